from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from apps.workers.sink import ActionSink
from connectors.models import Action
from core.config import settings
from core.metrics import ACTIONS_DISPATCHED, SINK_FAILURES

logger = logging.getLogger(__name__)


class ActionBatchingQueue:
    """Accumulates actions and ships them to the sink in bounded batches.

    ``push`` never waits on the sink: once the accumulator grows past the
    threshold it is swapped for an empty list and the full one is sent from a
    background task. ``drain`` waits for those tasks and then sends whatever
    is left, so every pushed action ends up in exactly one batch.
    """

    def __init__(
        self,
        sink: ActionSink,
        flush_threshold: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        self._sink = sink
        self._flush_threshold = flush_threshold or settings.action_flush_threshold
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.sink_concurrency)
        self._actions: List[Action] = []
        self._pending: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._actions)

    @property
    def outstanding(self) -> int:
        return len(self._pending)

    def push(self, action: Action) -> None:
        self._actions.append(action)
        if len(self._actions) > self._flush_threshold:
            batch, self._actions = self._actions, []
            logger.info("Flushing action batch", extra={"count": len(batch)})
            self._dispatch(batch)

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending))
        if self._actions:
            batch, self._actions = self._actions, []
            logger.info("Flushing final action batch", extra={"count": len(batch)})
            await self._send(batch)

    def _dispatch(self, batch: List[Action]) -> None:
        task = asyncio.create_task(self._send(batch))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, batch: List[Action]) -> None:
        async with self._semaphore:
            try:
                await self._sink.send(batch)
            except Exception:
                SINK_FAILURES.inc()
                logger.exception("Sink rejected action batch", extra={"count": len(batch)})
                return
        ACTIONS_DISPATCHED.inc(len(batch))
