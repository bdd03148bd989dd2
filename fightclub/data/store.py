"""SQLModel persistence for participants and finished matches.

``SqlResultStore`` plugs into the match runner as a result sink; the query
helpers serve the CLI and any API layer built on top.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlmodel import JSON, Column, Field, Session, SQLModel, create_engine, select
from sqlmodel.pool import StaticPool

from fightclub.core.match import Match
from fightclub.core.rating import RatingChange, apply_rating
from fightclub.utils.config import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Database connection
# ---------------------------------------------------------------------------

def create_db_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite URLs share one connection."""
    url = url or config.database_url
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, echo=echo)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    SQLModel.metadata.create_all(engine)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

class ParticipantRecord(SQLModel, table=True):
    """Persistent rating and record of a participant."""

    __tablename__ = "participants"  # type: ignore[assignment]

    id: str = Field(primary_key=True)  # Participant id
    name: str = Field(index=True)
    rating: int = 1200
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MatchRecord(SQLModel, table=True):
    """A finished match with its full replay."""

    __tablename__ = "matches"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    match_id: str = Field(index=True, unique=True)  # UUID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    # Sides
    player1_id: str = Field(index=True)
    player2_id: str = Field(index=True)
    player1_name: str
    player2_name: str

    # Result (winner_id is None for a draw)
    winner_id: str | None = None
    winner_name: str | None = None
    is_draw: bool = False
    player1_delta: int = 0
    player2_delta: int = 0
    turn_count: int = 0

    # Turn-by-turn replay (list of TurnRecord dicts)
    replay: list = Field(default_factory=list, sa_column=Column(JSON))


class LeaderboardEntry(SQLModel):
    """Read-only leaderboard row (not a table)."""

    rank: int = 0
    participant_id: str
    name: str
    rating: int = 1200
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    win_rate: float = 0.0


# ---------------------------------------------------------------------------
# Result sink
# ---------------------------------------------------------------------------

class SqlResultStore:
    """Result sink writing ratings and replays through SQLModel."""

    def __init__(self, engine: Engine, min_rating: int | None = None):
        self.engine = engine
        self.min_rating = config.min_rating if min_rating is None else min_rating

    def record_result(self, match: Match, change: RatingChange) -> None:
        with Session(self.engine) as session:
            if get_match_record(session, match.id) is not None:
                logger.warning("Match %s already recorded, skipping", match.id)
                return

            sides = (
                (match.player1, match.player1_rating, change.player1_delta),
                (match.player2, match.player2_rating, change.player2_delta),
            )
            for player, snapshot, delta in sides:
                record = session.get(ParticipantRecord, player.id)
                if record is None:
                    record = ParticipantRecord(id=player.id, name=player.name, rating=snapshot)
                record.name = player.name
                record.rating = apply_rating(record.rating, delta, self.min_rating)
                record.games_played += 1
                if change.winner_id is None:
                    record.draws += 1
                elif change.winner_id == player.id:
                    record.wins += 1
                else:
                    record.losses += 1
                record.updated_at = datetime.now(timezone.utc)
                session.add(record)

            session.add(MatchRecord(
                match_id=match.id,
                created_at=match.created_at,
                finished_at=match.finished_at,
                player1_id=match.player1.id,
                player2_id=match.player2.id,
                player1_name=match.player1.name,
                player2_name=match.player2.name,
                winner_id=None if match.is_draw else match.winner,
                winner_name=match.winner_name,
                is_draw=match.is_draw,
                player1_delta=change.player1_delta,
                player2_delta=change.player2_delta,
                turn_count=len(match.turns),
                replay=[turn.model_dump(mode="json") for turn in match.turns],
            ))
            session.commit()
        logger.debug("Stored match %s", match.id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def get_match_record(session: Session, match_id: str) -> MatchRecord | None:
    return session.exec(select(MatchRecord).where(MatchRecord.match_id == match_id)).first()


def get_leaderboard(session: Session, limit: int = 20, offset: int = 0) -> list[LeaderboardEntry]:
    """Participants ordered by rating, highest first."""
    stmt = (
        select(ParticipantRecord)
        .order_by(ParticipantRecord.rating.desc(), ParticipantRecord.wins.desc())  # type: ignore[union-attr]
        .offset(offset)
        .limit(limit)
    )
    records = session.exec(stmt).all()

    entries = []
    for i, record in enumerate(records, start=offset + 1):
        win_rate = (record.wins / record.games_played * 100) if record.games_played else 0.0
        entries.append(
            LeaderboardEntry(
                rank=i,
                participant_id=record.id,
                name=record.name,
                rating=record.rating,
                games_played=record.games_played,
                wins=record.wins,
                losses=record.losses,
                draws=record.draws,
                win_rate=round(win_rate, 1),
            )
        )
    return entries
