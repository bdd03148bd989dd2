"""Participant registry: the long-lived record of who can fight."""

from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime, timezone
from enum import Enum

import httpx
from pydantic import BaseModel, Field

from fightclub.agents.base import DecisionProvider
from fightclub.agents.heuristic import HeuristicProvider
from fightclub.agents.llm import LLMProvider
from fightclub.agents.webhook import WebhookProvider
from fightclub.core.fighters import TeamConfig
from fightclub.core.match import Match
from fightclub.core.rating import RatingChange, apply_rating
from fightclub.data.teams import default_team
from fightclub.errors import RegistrationError, UnknownParticipantError
from fightclub.utils.config import Config, config

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{2,32}$")


class Strategy(str, Enum):
    """How a participant's actions are decided."""

    HEURISTIC = "heuristic"
    WEBHOOK = "webhook"
    LLM = "llm"


class Participant(BaseModel):
    """A registered fighter coach and its running record."""

    id: str = Field(default_factory=lambda: f"bot_{secrets.token_hex(12)}")
    name: str
    team: TeamConfig = Field(default_factory=default_team)
    strategy: Strategy = Strategy.HEURISTIC
    callback_url: str | None = None
    secret: str = Field(default_factory=lambda: secrets.token_hex(32))

    # Record
    rating: int = 1200
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.wins / self.games_played


class ParticipantRegistry:
    """In-memory participant store, also usable as a result sink."""

    def __init__(self, settings: Config = config, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self.client = client  # Shared by webhook and language-model providers
        self._participants: dict[str, Participant] = {}

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, participant_id: str) -> bool:
        return participant_id in self._participants

    def register(
        self,
        name: str,
        team: TeamConfig | None = None,
        strategy: Strategy | str = Strategy.HEURISTIC,
        callback_url: str | None = None,
    ) -> Participant:
        if not name or not NAME_PATTERN.match(name):
            raise RegistrationError(
                "Name must be 2-32 characters of letters, numbers, underscores and hyphens"
            )
        if self.get_by_name(name) is not None:
            raise RegistrationError(f"Name '{name}' is already taken")

        strategy = Strategy(strategy)
        if strategy == Strategy.WEBHOOK and not callback_url:
            raise RegistrationError("Webhook participants need a callback URL")

        participant = Participant(
            name=name,
            team=team or default_team(),
            strategy=strategy,
            callback_url=callback_url,
            rating=self.settings.default_rating,
        )
        self._participants[participant.id] = participant
        logger.info("Registered %s (%s, %s)", participant.name, participant.id, strategy.value)
        return participant

    def get(self, participant_id: str) -> Participant | None:
        return self._participants.get(participant_id)

    def require(self, participant_id: str) -> Participant:
        participant = self._participants.get(participant_id)
        if participant is None:
            raise UnknownParticipantError(participant_id)
        return participant

    def get_by_name(self, name: str) -> Participant | None:
        lowered = name.lower()
        for participant in self._participants.values():
            if participant.name.lower() == lowered:
                return participant
        return None

    def all(self) -> list[Participant]:
        return list(self._participants.values())

    def leaderboard(self, limit: int = 10) -> list[Participant]:
        ranked = sorted(self._participants.values(), key=lambda p: (-p.rating, -p.wins, p.name.lower()))
        return ranked[:limit]

    def provider_for(self, participant_id: str) -> DecisionProvider:
        """Build the decision provider matching a participant's strategy."""
        participant = self.require(participant_id)
        if participant.strategy == Strategy.WEBHOOK:
            return WebhookProvider(participant.callback_url, participant.secret, client=self.client)
        if participant.strategy == Strategy.LLM:
            return LLMProvider(
                api_key=self.settings.openai_api_key,
                model=self.settings.llm_model,
                base_url=self.settings.llm_base_url,
                client=self.client,
                personality=participant.team.personality,
            )
        return HeuristicProvider(weakness_bonus=self.settings.weakness_bonus)

    def record_result(self, match: Match, change: RatingChange) -> None:
        """Apply a finished match to both participants' records."""
        for player_id in (change.player1_id, change.player2_id):
            participant = self._participants.get(player_id)
            if participant is None:
                continue
            participant.rating = apply_rating(
                participant.rating, change.delta_for(player_id), self.settings.min_rating
            )
            participant.games_played += 1
            if change.winner_id is None:
                participant.draws += 1
            elif change.winner_id == player_id:
                participant.wins += 1
            else:
                participant.losses += 1
