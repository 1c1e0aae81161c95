from __future__ import annotations

import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis

from core.config import settings
from core.logging import log_event

logger = logging.getLogger(__name__)


class ValkeyClient:
    def __init__(self) -> None:
        self._client = Redis(host=settings.valkey_host, port=settings.valkey_port, decode_responses=True)

    async def close(self) -> None:
        await self._client.close()

    async def ping(self) -> bool:
        response = await self._client.ping()
        return bool(response)

    async def get(self, key: str) -> Optional[Any]:
        value = await self._client.get(key)
        if value:
            log_event(logger, "cache.hit", key=key)
            return json.loads(value)
        log_event(logger, "cache.miss", key=key)
        return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        await self._client.set(key, json.dumps(value, default=str), ex=ttl_seconds)
        log_event(logger, "cache.store", key=key)

    async def enqueue(self, queue: str, payload: Any) -> None:
        await self._client.lpush(queue, json.dumps(payload, default=str))
        log_event(logger, "queue.enqueue", queue=queue)


valkey_client = ValkeyClient()
