"""Arena: the long-lived object tying registry, queue and runner together."""

from __future__ import annotations

import logging
from typing import Iterable

from fightclub.arena.queue import MatchmakingQueue
from fightclub.arena.registry import Participant, ParticipantRegistry
from fightclub.arena.runner import EventSink, MatchRunner, ResultSink
from fightclub.core.match import Match, create_match
from fightclub.utils.config import Config, config

logger = logging.getLogger(__name__)


class Arena:
    """Owns every piece of shared state for one process.

    Build one at startup and pass it around. Independent arenas share
    nothing, which keeps tests with several concurrent matches isolated.
    """

    def __init__(
        self,
        settings: Config = config,
        registry: ParticipantRegistry | None = None,
        event_sinks: Iterable[EventSink] = (),
        result_sinks: Iterable[ResultSink] = (),
    ):
        self.settings = settings
        self.registry = registry or ParticipantRegistry(settings)
        self.event_sinks: list[EventSink] = list(event_sinks)
        self.result_sinks: list[ResultSink] = [self.registry, *result_sinks]
        self.matches: dict[str, Match] = {}  # Pending and running only
        self.queue = MatchmakingQueue(self.registry, self._start_queued_match)

    def add_event_sink(self, sink: EventSink) -> None:
        self.event_sinks.append(sink)

    def add_result_sink(self, sink: ResultSink) -> None:
        self.result_sinks.append(sink)

    def create_match(self, participant_a_id: str, participant_b_id: str) -> Match:
        """Create a pending match between two registered participants."""
        first = self.registry.require(participant_a_id)
        second = self.registry.require(participant_b_id)
        match = create_match(first, second)
        self.matches[match.id] = match
        logger.debug("Created match %s: %s vs %s", match.id, first.name, second.name)
        return match

    def get_match(self, match_id: str) -> Match | None:
        return self.matches.get(match_id)

    async def run_match(self, match: Match) -> Match:
        """Run a pending match with each side's registered provider.

        The match is no longer tracked once ``run`` returns or raises; result
        sinks hold the finished record.
        """
        try:
            runner = MatchRunner(
                self.registry.provider_for(match.player1.id),
                self.registry.provider_for(match.player2.id),
                settings=self.settings,
                event_sinks=self.event_sinks,
                result_sinks=self.result_sinks,
            )
            return await runner.run(match)
        finally:
            self.matches.pop(match.id, None)

    async def join(self, participant_id: str) -> int:
        return await self.queue.join(participant_id)

    async def leave(self, participant_id: str) -> int:
        return await self.queue.leave(participant_id)

    async def _start_queued_match(self, first: Participant, second: Participant) -> Match:
        match = self.create_match(first.id, second.id)
        return await self.run_match(match)
