from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from connectors.models import Account
from core.cache import ValkeyClient, valkey_client
from core.config import settings

logger = logging.getLogger(__name__)


class AccountStore:
    """HubSpot account records kept as one JSON list under a Valkey key.

    Writes are a logged no-op unless persistence is enabled, so a run can
    advance watermarks and tokens in memory without touching stored state.
    """

    def __init__(
        self,
        cache: Optional[ValkeyClient] = None,
        key: Optional[str] = None,
        persistence_enabled: Optional[bool] = None,
    ) -> None:
        self._cache = cache or valkey_client
        self._key = key or settings.accounts_key
        self._persistence_enabled = settings.persistence_enabled if persistence_enabled is None else persistence_enabled

    @property
    def persistence_enabled(self) -> bool:
        return self._persistence_enabled

    async def load_accounts(self) -> List[Account]:
        records = await self._cache.get(self._key) or []
        accounts: List[Account] = []
        for record in records:
            try:
                accounts.append(Account.model_validate(record))
            except ValidationError:
                hub_id = record.get("hubId") if isinstance(record, dict) else None
                logger.exception("Skipping malformed account record", extra={"hub_id": hub_id})
        return accounts

    async def save_account(self, account: Account) -> bool:
        if not self._persistence_enabled:
            logger.debug("Persistence disabled; keeping account changes in memory", extra={"hub_id": account.hub_id})
            return False
        records: List[Dict[str, Any]] = await self._cache.get(self._key) or []
        serialized = account.model_dump(mode="json", by_alias=True)
        for index, record in enumerate(records):
            if record.get("hubId") == account.hub_id:
                records[index] = serialized
                break
        else:
            records.append(serialized)
        await self._cache.set(self._key, records)
        return True
