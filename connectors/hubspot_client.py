from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from core.config import settings

logger = logging.getLogger(__name__)

SEARCH_PATH = "/crm/v3/objects/{object_type}/search"
BATCH_READ_PATH = "/crm/v3/objects/{object_type}/batch/read"
ASSOCIATIONS_PATH = "/crm/v3/associations/{from_type}/{to_type}/batch/read"
TOKEN_PATH = "/oauth/v1/token"


class HubSpotClient:
    """Async wrapper around the handful of HubSpot endpoints the sync needs.

    The access token is swapped in place by the credential refresher so every
    subsequent request uses the newest token.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.hubspot_api_base,
            timeout=timeout or settings.hubspot_timeout_seconds,
            transport=transport,
        )
        self._access_token = access_token

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    def set_access_token(self, token: Optional[str]) -> None:
        self._access_token = token

    async def search(self, object_type: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post(SEARCH_PATH.format(object_type=object_type), body)

    async def batch_read(self, object_type: str, ids: Sequence[str], properties: List[str]) -> Dict[str, Any]:
        body = {"properties": properties, "inputs": [{"id": object_id} for object_id in ids]}
        return await self._post(BATCH_READ_PATH.format(object_type=object_type), body)

    async def batch_read_associations(self, from_type: str, to_type: str, ids: Sequence[str]) -> Dict[str, Any]:
        body = {"inputs": [{"id": object_id} for object_id in ids]}
        return await self._post(ASSOCIATIONS_PATH.format(from_type=from_type, to_type=to_type), body)

    async def create_token(self, client_id: str, client_secret: str, refresh_token: str) -> Dict[str, Any]:
        data = {
            "grant_type": "refresh_token",
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
        }
        response = await self._client.post(TOKEN_PATH, data=data)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        response = await self._client.post(path, json=body, headers=headers)
        if response.is_error:
            logger.warning("HubSpot request failed", extra={"path": path, "status": response.status_code})
        response.raise_for_status()
        return response.json()
