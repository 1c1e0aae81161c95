import json
from datetime import datetime, timedelta, timezone
from typing import List
from urllib.parse import parse_qs

import httpx
import pytest

from connectors.errors import AuthError
from connectors.hubspot_auth import CredentialRefresher
from connectors.hubspot_client import HubSpotClient
from connectors.models import Account
from core.config import settings


def make_client(handler, token="token-1") -> HubSpotClient:
    return HubSpotClient(access_token=token, base_url="https://api.test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_posts_body_with_bearer_token():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"results": [{"id": "1"}]})

    client = make_client(handler)
    result = await client.search("contacts", {"limit": 100})
    await client.close()

    assert result == {"results": [{"id": "1"}]}
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/crm/v3/objects/contacts/search"
    assert seen[0].headers["Authorization"] == "Bearer token-1"
    assert json.loads(seen[0].content) == {"limit": 100}


@pytest.mark.asyncio
async def test_batch_endpoints_send_inputs():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"results": []})

    client = make_client(handler)
    await client.batch_read_associations("meetings", "contacts", ["1", "2"])
    await client.batch_read("contacts", ["7"], ["email"])
    await client.close()

    assert seen[0].url.path == "/crm/v3/associations/meetings/contacts/batch/read"
    assert json.loads(seen[0].content) == {"inputs": [{"id": "1"}, {"id": "2"}]}
    assert seen[1].url.path == "/crm/v3/objects/contacts/batch/read"
    assert json.loads(seen[1].content) == {"properties": ["email"], "inputs": [{"id": "7"}]}


@pytest.mark.asyncio
async def test_error_status_raises():
    client = make_client(lambda request: httpx.Response(502, json={"message": "bad gateway"}))
    with pytest.raises(httpx.HTTPStatusError):
        await client.search("companies", {})
    await client.close()


@pytest.mark.asyncio
async def test_refresher_swaps_token_and_expiry():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "fresh", "refresh_token": "rotated", "expires_in": 1800})

    client = make_client(handler, token="stale")
    account = Account(hubId=42, accessToken="stale", refreshToken="refresh-42")
    refresher = CredentialRefresher(client, client_id="cid", client_secret="secret")

    before = datetime.now(timezone.utc)
    grant = await refresher.refresh(account)
    await client.close()

    form = parse_qs(seen[0].content.decode())
    assert seen[0].url.path == "/oauth/v1/token"
    assert form["grant_type"] == ["refresh_token"]
    assert form["client_id"] == ["cid"]
    assert form["refresh_token"] == ["refresh-42"]
    assert grant.access_token == "fresh"
    assert client.access_token == "fresh"
    assert account.access_token == "fresh"
    assert account.refresh_token == "refresh-42"
    assert before + timedelta(seconds=1790) <= account.expires_at <= datetime.now(timezone.utc) + timedelta(seconds=1800)


@pytest.mark.asyncio
async def test_refresher_wraps_http_failures():
    client = make_client(lambda request: httpx.Response(400, json={"status": "BAD_REFRESH_TOKEN"}), token="stale")
    account = Account(hubId=1, accessToken="stale", refreshToken="bad")
    refresher = CredentialRefresher(client, client_id="cid", client_secret="secret")

    with pytest.raises(AuthError):
        await refresher.refresh(account)
    await client.close()

    assert account.access_token == "stale"
    assert client.access_token == "stale"


@pytest.mark.asyncio
async def test_refresher_requires_oauth_client(monkeypatch):
    monkeypatch.setattr(settings, "hubspot_cid", None)
    monkeypatch.setattr(settings, "hubspot_cs", None)
    client = make_client(lambda request: httpx.Response(200, json={}))
    refresher = CredentialRefresher(client)

    with pytest.raises(AuthError):
        await refresher.refresh(Account(hubId=1, refreshToken="r"))
    await client.close()
