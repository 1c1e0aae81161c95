from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from connectors.errors import EnrichmentError
from connectors.hubspot_client import HubSpotClient

logger = logging.getLogger(__name__)


class AssociationEnricher:
    """Batch lookups that attach related ids and emails to a page of records.

    Lookups never abort a pass: on failure the association map falls back to
    all ``None`` and the email map to empty.
    """

    def __init__(self, client: HubSpotClient) -> None:
        self._client = client

    async def associations(self, from_type: str, to_type: str, ids: Sequence[str]) -> Dict[str, Optional[str]]:
        mapping: Dict[str, Optional[str]] = {str(object_id): None for object_id in ids}
        if not mapping:
            return mapping
        try:
            results = await self._read(
                self._client.batch_read_associations(from_type, to_type, list(mapping)),
                f"{from_type}->{to_type} associations",
            )
        except EnrichmentError as exc:
            logger.warning("Association lookup failed; continuing without associations", extra={"error": str(exc)})
            return mapping

        for item in results:
            from_id = (item.get("from") or {}).get("id")
            targets = item.get("to") or []
            if from_id is None or not targets or targets[0].get("id") is None:
                continue
            if str(from_id) in mapping:
                mapping[str(from_id)] = str(targets[0]["id"])
        return mapping

    async def resolve_emails(self, contact_ids: Iterable[Optional[str]]) -> Dict[str, str]:
        unique_ids = list(dict.fromkeys(str(contact_id) for contact_id in contact_ids if contact_id))
        if not unique_ids:
            return {}
        try:
            results = await self._read(
                self._client.batch_read("contacts", unique_ids, ["email"]),
                "contact emails",
            )
        except EnrichmentError as exc:
            logger.warning("Email lookup failed; continuing without emails", extra={"error": str(exc)})
            return {}

        emails: Dict[str, str] = {}
        for contact in results:
            email = (contact.get("properties") or {}).get("email")
            if email and contact.get("id") is not None:
                emails[str(contact["id"])] = email
        return emails

    async def _read(self, request: Any, what: str) -> List[Dict[str, Any]]:
        try:
            body = await request
        except Exception as exc:
            raise EnrichmentError(f"{what} lookup failed: {exc}") from exc
        return (body or {}).get("results") or []
