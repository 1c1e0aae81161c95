from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from connectors.errors import AuthError
from connectors.hubspot_client import HubSpotClient
from connectors.models import Account
from core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class TokenGrant:
    access_token: str
    expires_at: datetime


class CredentialRefresher:
    def __init__(
        self,
        client: HubSpotClient,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
    ) -> None:
        self._client = client
        self._client_id = client_id or settings.hubspot_cid
        self._client_secret = client_secret or settings.hubspot_cs

    async def refresh(self, account: Account) -> TokenGrant:
        """Exchange the account's refresh token and make the new access token live.

        Only the cached access token and its expiry change on the account; the
        refresh token is left alone and nothing is persisted here.
        """
        if not self._client_id or not self._client_secret:
            raise AuthError("HubSpot OAuth client missing; set HUBSPOT_CID/HUBSPOT_CS")
        try:
            body = await self._client.create_token(self._client_id, self._client_secret, account.refresh_token)
        except (httpx.HTTPError, ValueError) as exc:
            raise AuthError(f"Token refresh failed for hub {account.hub_id}: {exc}") from exc

        access_token = body.get("access_token")
        try:
            expires_in = int(body["expires_in"])
        except (KeyError, TypeError, ValueError):
            expires_in = None
        if not access_token or expires_in is None:
            raise AuthError(f"Token response for hub {account.hub_id} is missing access_token/expires_in")

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        self._client.set_access_token(access_token)
        if access_token != account.access_token:
            account.access_token = access_token
        account.expires_at = expires_at
        logger.info("Refreshed HubSpot access token", extra={"expires_at": expires_at.isoformat()})
        return TokenGrant(access_token=access_token, expires_at=expires_at)
