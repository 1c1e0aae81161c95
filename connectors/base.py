from __future__ import annotations

import abc
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import pendulum

from connectors.models import Account, Action, SyncWindow
from connectors.paginator import SearchSpec, WindowedPaginator
from core.config import settings
from core.logging import log_event

logger = logging.getLogger(__name__)


class ActionQueue(Protocol):
    def push(self, action: Action) -> None:
        ...


class BaseEntitySync(abc.ABC):
    """One incremental pass over a single HubSpot object type.

    ``name`` doubles as the object type in API paths and as the key of the
    account's ``lastPulledDates`` watermark.
    """

    name: str
    last_modified_property: str
    properties: List[str]

    def __init__(self, paginator: WindowedPaginator) -> None:
        self._paginator = paginator

    @property
    def search_spec(self) -> SearchSpec:
        return SearchSpec(self.name, self.last_modified_property, list(self.properties))

    @abc.abstractmethod
    async def build_actions(self, records: List[Dict[str, Any]], watermark: Optional[datetime]) -> List[Action]:
        """Map one page of raw records to actions."""

    async def sync(self, account: Account, queue: ActionQueue) -> int:
        now = pendulum.now("UTC")
        watermark = account.watermark(self.name)
        window = SyncWindow(lower_bound=watermark or self.initial_lower_bound(now), upper_bound=now)

        total = 0
        async for records in self._paginator.pages(account, self.search_spec, window):
            actions = await self.build_actions(records, watermark)
            for action in actions:
                queue.push(action)
            total += len(actions)
            log_event(logger, "sync.batch", entity=self.name, records=len(records), actions=len(actions))

        self.checkpoint(account, now)
        return total

    def checkpoint(self, account: Account, pulled_at: datetime) -> None:
        account.advance_watermark(self.name, pulled_at)

    def initial_lower_bound(self, now: datetime) -> datetime:
        return pendulum.instance(now).subtract(years=settings.initial_lookback_years)


def drop_empty(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None and value != ""}
