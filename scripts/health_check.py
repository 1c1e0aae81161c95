from __future__ import annotations

import asyncio
import json

import httpx

from connectors.state_store import AccountStore
from core.cache import valkey_client
from core.config import settings


async def check_hubspot() -> bool:
    async with httpx.AsyncClient(base_url=settings.hubspot_api_base, timeout=5.0) as client:
        response = await client.get("/")
        return response.status_code < 500


async def check_valkey() -> bool:
    return await valkey_client.ping()


async def count_accounts() -> int:
    accounts = await AccountStore(cache=valkey_client).load_accounts()
    return len(accounts)


async def main() -> None:
    hubspot_task = asyncio.create_task(check_hubspot())
    valkey_task = asyncio.create_task(check_valkey())

    hubspot_status = await hubspot_task
    valkey_status = await valkey_task
    accounts = await count_accounts() if valkey_status else 0
    await valkey_client.close()

    result = {
        "hubspot": hubspot_status,
        "valkey": valkey_status,
        "accounts": accounts,
        "persistence_enabled": settings.persistence_enabled,
    }
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    asyncio.run(main())
