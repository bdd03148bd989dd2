"""Exceptions raised across fightclub."""


class FightClubError(Exception):
    """Base class for fightclub errors."""


class UnknownParticipantError(FightClubError):
    """Raised when a participant id is not registered."""

    def __init__(self, participant_id: str):
        super().__init__(f"Unknown participant: {participant_id}")
        self.participant_id = participant_id


class RegistrationError(FightClubError):
    """Raised when a participant cannot be registered."""


class MatchFinishedError(FightClubError):
    """Raised when a finished match is mutated."""


class DecisionError(FightClubError):
    """Raised when a decision provider cannot produce an action."""


class RosterError(FightClubError):
    """Raised when a team definition cannot be loaded."""
