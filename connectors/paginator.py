from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, List, Optional

from connectors.errors import SyncError
from connectors.hubspot_client import HubSpotClient
from connectors.models import Account, Page, SyncWindow, parse_timestamp, to_epoch_ms
from connectors.retry import RetryingCaller
from core.config import settings
from core.logging import log_event

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
REANCHOR_STEP = timedelta(milliseconds=1)


@dataclass(frozen=True)
class SearchSpec:
    object_type: str
    last_modified_property: str
    properties: List[str]


class WindowedPaginator:
    """Walks one entity type's search results inside a last-modified window.

    The search API refuses offsets past a fixed depth, so when the next
    cursor reaches ``max_offset`` the window's lower bound is moved up to the
    last record seen and paging restarts from the top of the narrower window.
    Records sharing that boundary instant can be returned twice. When more
    records share one instant than a window can reach, paging resumes just
    past that instant.
    """

    def __init__(
        self,
        client: HubSpotClient,
        caller: RetryingCaller,
        page_size: Optional[int] = None,
        max_offset: Optional[int] = None,
    ) -> None:
        self._client = client
        self._caller = caller
        self._page_size = min(page_size or settings.page_size, MAX_PAGE_SIZE)
        self._max_offset = max_offset if max_offset is not None else settings.max_pagination_offset

    def build_search(self, spec: SearchSpec, window: SyncWindow) -> Dict[str, Any]:
        prop = spec.last_modified_property
        body: Dict[str, Any] = {
            "filterGroups": [
                {
                    "filters": [
                        {"propertyName": prop, "operator": "GTE", "value": str(to_epoch_ms(window.lower_bound))},
                        {"propertyName": prop, "operator": "LTE", "value": str(to_epoch_ms(window.upper_bound))},
                    ]
                }
            ],
            "sorts": [{"propertyName": prop, "direction": "ASCENDING"}],
            "properties": list(spec.properties),
            "limit": self._page_size,
        }
        if window.cursor:
            body["after"] = window.cursor
        return body

    async def next_page(self, account: Account, spec: SearchSpec, window: SyncWindow) -> Page:
        body = self.build_search(spec, window)
        response = await self._caller.call(
            account,
            lambda: self._client.search(spec.object_type, body),
            description=f"search {spec.object_type}",
        )
        records: List[Dict[str, Any]] = response.get("results") or []
        log_event(logger, "paginator.page", object_type=spec.object_type, count=len(records), cursor=window.cursor)

        after = ((response.get("paging") or {}).get("next") or {}).get("after")
        if not after:
            return Page(records=records, next_window=None)

        next_cursor = int(after)
        if next_cursor < self._max_offset:
            return Page(records=records, next_window=replace(window, cursor=next_cursor))
        return Page(records=records, next_window=self._reanchor(spec, window, records))

    async def pages(self, account: Account, spec: SearchSpec, window: SyncWindow) -> AsyncIterator[List[Dict[str, Any]]]:
        current: Optional[SyncWindow] = window
        while current is not None:
            page = await self.next_page(account, spec, current)
            yield page.records
            current = page.next_window

    def _reanchor(self, spec: SearchSpec, window: SyncWindow, records: List[Dict[str, Any]]) -> Optional[SyncWindow]:
        last_modified = parse_timestamp(records[-1].get("updatedAt")) if records else None
        if last_modified is None:
            raise SyncError(
                f"Offset limit reached on {spec.object_type} without a last-modified timestamp to re-anchor on"
            )
        lower_bound = last_modified
        if lower_bound <= window.lower_bound:
            # more records share this instant than one window can page through; skip past it
            lower_bound = window.lower_bound + REANCHOR_STEP
            logger.warning(
                "Offset limit reached inside a single last-modified instant; skipping its remaining records",
                extra={"object_type": spec.object_type, "lower_bound": window.lower_bound.isoformat()},
            )
        if lower_bound > window.upper_bound:
            return None
        log_event(logger, "paginator.reanchor", object_type=spec.object_type, lower_bound=lower_bound.isoformat())
        return replace(window, lower_bound=lower_bound, cursor=None, bucketed=True)
