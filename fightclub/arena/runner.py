"""Match orchestrator: drives a match from pending to finished.

Each turn both sides are asked for a decision concurrently, each under its
own deadline. A side that times out or fails gets a heuristic decision
instead, so a match always completes within ``max_turns``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from enum import Enum
from typing import Any, Callable, Iterable, Protocol

from pydantic import BaseModel

from fightclub.agents.base import Decision, DecisionProvider, build_game_view
from fightclub.agents.heuristic import HeuristicProvider
from fightclub.core.combat import DRAW, TurnRecord, check_winner, process_turn
from fightclub.core.match import Match
from fightclub.core.rating import RatingChange, compute_rating_change
from fightclub.errors import DecisionError
from fightclub.utils.config import Config, config

logger = logging.getLogger(__name__)

FALLBACK_SOURCE = "fallback"


class MatchEventType(str, Enum):
    START = "start"
    TURN = "turn"
    END = "end"


class MatchEvent(BaseModel):
    """Progress notification sent to event sinks."""

    type: MatchEventType
    match_id: str
    turn: TurnRecord | None = None  # For turn events
    match: Match | None = None  # Snapshot, for start and end events


EventSink = Callable[[MatchEvent], Any]


class ResultSink(Protocol):
    def record_result(self, match: Match, change: RatingChange) -> Any:
        ...


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class MatchRunner:
    """Run one match between two decision providers.

    Args:
        provider1: Decides for ``match.player1``.
        provider2: Decides for ``match.player2``.
        fallback: Used whenever a provider fails or misses its deadline.
        settings: Match rules and timeouts.
        event_sinks: Callables (sync or async) receiving MatchEvents.
            Failures are logged and ignored.
        result_sinks: Objects with ``record_result(match, change)``.
            Failures propagate to the caller.
    """

    def __init__(
        self,
        provider1: DecisionProvider,
        provider2: DecisionProvider,
        *,
        fallback: HeuristicProvider | None = None,
        settings: Config = config,
        event_sinks: Iterable[EventSink] = (),
        result_sinks: Iterable[ResultSink] = (),
    ):
        self.provider1 = provider1
        self.provider2 = provider2
        self.settings = settings
        self.fallback = fallback or HeuristicProvider(weakness_bonus=settings.weakness_bonus)
        self.event_sinks = list(event_sinks)
        self.result_sinks = list(result_sinks)
        self.rating_change: RatingChange | None = None

    async def run(self, match: Match) -> Match:
        """Play ``match`` to completion and return it finished."""
        settings = self.settings
        p1, p2 = match.player1, match.player2

        match.start()
        logger.info("Match %s started: %s vs %s", match.id, p1.name, p2.name)
        await self._emit(MatchEvent(type=MatchEventType.START, match_id=match.id, match=match.model_copy(deep=True)))

        winner: str | None = None
        for turn in range(match.current_turn + 1, settings.max_turns + 1):
            if p1.active is None or p2.active is None:
                break

            (decision1, note1), (decision2, note2) = await asyncio.gather(
                self._decide(match, p1.id, self.provider1),
                self._decide(match, p2.id, self.provider2),
            )

            result = process_turn(
                p1, p2, decision1.action, decision2.action, turn,
                max_energy=settings.max_energy,
                weakness_bonus=settings.weakness_bonus,
                knockouts_to_win=settings.knockouts_to_win,
            )
            record = result.record
            for side, decision in ((record.player1, decision1), (record.player2, decision2)):
                side.thinking = decision.thinking
                side.trash_talk = decision.trash_talk
                side.source = decision.source
            record.events[:0] = [note for note in (note1, note2) if note]

            match.record_turn(record)
            logger.debug("Match %s turn %d: %s", match.id, turn, " | ".join(record.events))
            await self._emit(MatchEvent(type=MatchEventType.TURN, match_id=match.id, turn=record))

            winner = check_winner(p1, p2, settings.knockouts_to_win)
            if winner is not None:
                break

        if winner is None:
            winner = check_winner(p1, p2, settings.knockouts_to_win)
        if winner is None:
            if p1.knockouts > p2.knockouts:
                winner = p1.id
            elif p2.knockouts > p1.knockouts:
                winner = p2.id
            else:
                winner = DRAW

        await self._finish(match, winner)
        return match

    async def _decide(
        self,
        match: Match,
        player_id: str,
        provider: DecisionProvider,
    ) -> tuple[Decision, str | None]:
        """Get one side's decision, substituting the fallback on failure.

        Returns the decision and, when the fallback was used, a narration line.
        """
        view = build_game_view(match, player_id, self.settings.history_size, self.settings.max_energy)
        timeout = self.settings.decision_timeout
        started = time.perf_counter()
        try:
            decision = await asyncio.wait_for(provider.decide(view, timeout), timeout)
            if not isinstance(decision, Decision):
                raise DecisionError(f"provider returned {type(decision).__name__}")
        except asyncio.TimeoutError:
            reason = f"timed out after {timeout:g}s"
        except Exception as e:
            reason = f"failed ({str(e) or type(e).__name__})"
        else:
            if not decision.response_time_ms:
                decision.response_time_ms = (time.perf_counter() - started) * 1000
            return decision, None

        name = match.get_player(player_id).name
        logger.warning("Match %s turn %d: decision for %s %s, using fallback", match.id, view.turn, name, reason)
        decision = self.fallback.choose(view)
        decision.thinking = f"System error, falling back to instinct! {decision.thinking}"
        decision.source = FALLBACK_SOURCE
        decision.response_time_ms = (time.perf_counter() - started) * 1000
        return decision, f"{name}'s coach {reason}. {name} falls back to instinct."

    async def _finish(self, match: Match, winner: str) -> None:
        match.finish(winner)
        change = compute_rating_change(match, self.settings.k_factor)
        self.rating_change = change

        for sink in self.result_sinks:
            await _maybe_await(sink.record_result(match, change))

        logger.info(
            "Match %s finished after %d turns: %s",
            match.id, len(match.turns), "draw" if match.is_draw else f"{match.winner_name} wins",
        )
        await self._emit(MatchEvent(type=MatchEventType.END, match_id=match.id, match=match.model_copy(deep=True)))

    async def _emit(self, event: MatchEvent) -> None:
        for sink in self.event_sinks:
            try:
                await _maybe_await(sink(event))
            except Exception:
                logger.exception("Event sink %r failed on %s event for match %s", sink, event.type.value, event.match_id)


async def run_match(
    match: Match,
    provider1: DecisionProvider,
    provider2: DecisionProvider,
    **kwargs: Any,
) -> Match:
    """Run ``match`` to completion with a one-off MatchRunner."""
    return await MatchRunner(provider1, provider2, **kwargs).run(match)
