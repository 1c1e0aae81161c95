from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

from connectors.models import Account
from core.cache import valkey_client
from core.config import settings


def load_records(path: Path) -> List[Dict[str, Any]]:
    records = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(records, dict):
        records = [records]
    # validate before anything is written
    return [Account.model_validate(record).model_dump(mode="json", by_alias=True) for record in records]


async def main() -> None:
    parser = argparse.ArgumentParser(description="Load HubSpot account records into Valkey")
    parser.add_argument("path", type=Path, help="JSON file holding one account or a list of accounts")
    args = parser.parse_args()

    records = load_records(args.path)
    await valkey_client.set(settings.accounts_key, records)
    await valkey_client.close()
    print(f"Seeded {len(records)} account(s) under {settings.accounts_key}")


if __name__ == "__main__":
    asyncio.run(main())
