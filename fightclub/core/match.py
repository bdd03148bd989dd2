"""Match model: the two sides, the replay and the lifecycle status.

A Match moves pending -> active -> finished. Once finished its replay and
winner are frozen.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from fightclub.core.combat import DRAW, TurnRecord
from fightclub.core.fighters import Player, create_player
from fightclub.errors import MatchFinishedError

if TYPE_CHECKING:
    from fightclub.arena.registry import Participant


class MatchStatus(str, Enum):
    """Lifecycle status of a match."""

    PENDING = "pending"  # Created, no turn played yet
    ACTIVE = "active"  # Turn loop running
    FINISHED = "finished"  # Winner decided, replay frozen


class Match(BaseModel):
    """The complete state of a match between two participants."""

    # Identity
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    finished_at: datetime | None = None

    # Sides
    player1: Player
    player2: Player
    player1_rating: int = 1200  # Snapshot taken at creation
    player2_rating: int = 1200

    # Replay
    turns: list[TurnRecord] = Field(default_factory=list)
    current_turn: int = 0
    status: MatchStatus = MatchStatus.PENDING

    # Result: a player id, DRAW, or None while unfinished
    winner: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status == MatchStatus.FINISHED

    @property
    def is_draw(self) -> bool:
        return self.winner == DRAW

    @property
    def winner_name(self) -> str | None:
        if self.winner is None or self.is_draw:
            return None
        return self.get_player(self.winner).name

    @property
    def loser_id(self) -> str | None:
        if self.winner is None or self.is_draw:
            return None
        return self.opponent_of(self.winner).id

    def get_player(self, player_id: str) -> Player:
        if self.player1.id == player_id:
            return self.player1
        if self.player2.id == player_id:
            return self.player2
        raise KeyError(player_id)

    def opponent_of(self, player_id: str) -> Player:
        if self.player1.id == player_id:
            return self.player2
        if self.player2.id == player_id:
            return self.player1
        raise KeyError(player_id)

    def start(self) -> None:
        if self.is_finished:
            raise MatchFinishedError(f"Match {self.id} is already finished")
        if self.status == MatchStatus.PENDING:
            self.status = MatchStatus.ACTIVE
            self.started_at = datetime.now(timezone.utc)

    def record_turn(self, record: TurnRecord) -> None:
        """Append a resolved turn to the replay."""
        if self.is_finished:
            raise MatchFinishedError(f"Match {self.id} is already finished")
        self.turns.append(record)
        self.current_turn = record.turn

    def finish(self, winner: str) -> None:
        """Freeze the match with a winner id or DRAW."""
        if self.is_finished:
            raise MatchFinishedError(f"Match {self.id} is already finished")
        if winner != DRAW and winner not in (self.player1.id, self.player2.id):
            raise ValueError(f"{winner} is not a player in match {self.id}")
        self.winner = winner
        self.status = MatchStatus.FINISHED
        self.finished_at = datetime.now(timezone.utc)


def create_match(participant_a: Participant, participant_b: Participant) -> Match:
    """Build a pending match from two participants' rosters.

    Each side gets fresh copies of its team at full HP; the participants'
    current ratings are snapshotted onto the match.
    """
    if participant_a.id == participant_b.id:
        raise ValueError(f"{participant_a.name} cannot fight itself")
    return Match(
        player1=create_player(participant_a.id, participant_a.name, participant_a.team),
        player2=create_player(participant_b.id, participant_b.name, participant_b.team),
        player1_rating=participant_a.rating,
        player2_rating=participant_b.rating,
    )
