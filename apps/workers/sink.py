from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from connectors.models import Action
from core.cache import ValkeyClient, valkey_client
from core.config import settings

logger = logging.getLogger(__name__)


class ActionSink(Protocol):
    async def send(self, actions: Sequence[Action]) -> None:
        ...


class ValkeySink:
    """Hands each batch to the analytics loader as one JSON array on a Valkey list."""

    def __init__(self, cache: Optional[ValkeyClient] = None, queue_name: Optional[str] = None) -> None:
        self._cache = cache or valkey_client
        self._queue_name = queue_name or settings.sink_queue_name

    async def send(self, actions: Sequence[Action]) -> None:
        payload: List[dict] = [action.to_dict() for action in actions]
        await self._cache.enqueue(self._queue_name, payload)
        logger.info("Inserted actions into analytics queue", extra={"count": len(payload), "queue": self._queue_name})
