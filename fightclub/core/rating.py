"""Elo rating updates for finished matches."""

from __future__ import annotations

from pydantic import BaseModel

from fightclub.core.match import Match

K_FACTOR = 32
RATING_FLOOR = 100


class RatingChange(BaseModel):
    """Per-side rating deltas for one finished match."""

    player1_id: str
    player2_id: str
    player1_delta: int = 0
    player2_delta: int = 0
    winner_id: str | None = None  # None for a draw

    def delta_for(self, player_id: str) -> int:
        if player_id == self.player1_id:
            return self.player1_delta
        if player_id == self.player2_id:
            return self.player2_delta
        raise KeyError(player_id)


def calculate_elo_change(winner_rating: int, loser_rating: int, k_factor: int = K_FACTOR) -> tuple[int, int]:
    """Calculate Elo rating changes after a decisive match.

    Returns (winner_delta, loser_delta) where winner_delta >= 0 and
    loser_delta <= 0.
    """
    expected_winner = 1.0 / (1.0 + 10 ** ((loser_rating - winner_rating) / 400))
    expected_loser = 1.0 - expected_winner

    winner_delta = round(k_factor * (1 - expected_winner))
    loser_delta = round(k_factor * (0 - expected_loser))

    return winner_delta, loser_delta


def compute_rating_change(match: Match, k_factor: int = K_FACTOR) -> RatingChange:
    """Derive the rating deltas for a finished match.

    Uses the ratings snapshotted at match creation. A draw moves nobody.
    """
    change = RatingChange(player1_id=match.player1.id, player2_id=match.player2.id)
    if match.winner is None or match.is_draw:
        return change

    change.winner_id = match.winner
    if match.winner == match.player1.id:
        win, lose = calculate_elo_change(match.player1_rating, match.player2_rating, k_factor)
        change.player1_delta, change.player2_delta = win, lose
    else:
        win, lose = calculate_elo_change(match.player2_rating, match.player1_rating, k_factor)
        change.player2_delta, change.player1_delta = win, lose
    return change


def apply_rating(rating: int, delta: int, floor: int = RATING_FLOOR) -> int:
    """Apply a delta to a stored rating, never dropping below the floor."""
    return max(floor, rating + delta)
