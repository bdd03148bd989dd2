"""FIFO matchmaking queue."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from fightclub.arena.registry import Participant, ParticipantRegistry

logger = logging.getLogger(__name__)

StartMatch = Callable[[Participant, Participant], Awaitable[Any]]


class MatchmakingQueue:
    """Pairs waiting participants strictly in join order.

    Every pairing is handed to ``start_match`` as its own asyncio task. The
    tasks are kept until they finish and failures are logged, so nothing
    scheduled here is lost silently.
    """

    def __init__(self, registry: ParticipantRegistry, start_match: StartMatch):
        self.registry = registry
        self.start_match = start_match
        self._waiting: list[str] = []
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def waiting(self) -> list[str]:
        return list(self._waiting)

    @property
    def running(self) -> int:
        return len(self._tasks)

    def __len__(self) -> int:
        return len(self._waiting)

    def position(self, participant_id: str) -> int:
        """1-based queue position, or 0 when not waiting."""
        try:
            return self._waiting.index(participant_id) + 1
        except ValueError:
            return 0

    async def join(self, participant_id: str) -> int:
        """Queue a participant and pair as many as possible.

        Returns the participant's position, or 0 if it was paired right away.
        Raises UnknownParticipantError without touching the queue.
        """
        self.registry.require(participant_id)
        async with self._lock:
            if participant_id not in self._waiting:
                self._waiting.append(participant_id)
            while len(self._waiting) >= 2:
                first = self._waiting.pop(0)
                second = self._waiting.pop(0)
                self._schedule(first, second)
            return self.position(participant_id)

    async def leave(self, participant_id: str) -> int:
        """Remove a participant if waiting; return the new queue length."""
        async with self._lock:
            if participant_id in self._waiting:
                self._waiting.remove(participant_id)
            return len(self._waiting)

    async def drain(self) -> None:
        """Wait until every scheduled match has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _schedule(self, first_id: str, second_id: str) -> None:
        first = self.registry.require(first_id)
        second = self.registry.require(second_id)
        logger.info("Paired %s with %s", first.name, second.name)
        task = asyncio.create_task(self.start_match(first, second), name=f"match:{first_id}:{second_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_match_done)

    def _on_match_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Match task %s was cancelled", task.get_name())
            return
        error = task.exception()
        if error is not None:
            logger.error("Match task %s failed", task.get_name(), exc_info=error)
