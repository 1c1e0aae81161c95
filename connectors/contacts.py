from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from connectors.base import BaseEntitySync, drop_empty
from connectors.enrichment import AssociationEnricher
from connectors.models import Action, ActionName, parse_timestamp
from connectors.paginator import WindowedPaginator


def _score(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


class ContactSync(BaseEntitySync):
    name = "contacts"
    last_modified_property = "lastmodifieddate"
    properties = [
        "firstname",
        "lastname",
        "jobtitle",
        "email",
        "hubspotscore",
        "hs_lead_status",
        "hs_analytics_source",
        "hs_latest_source",
    ]

    def __init__(self, paginator: WindowedPaginator, enricher: AssociationEnricher) -> None:
        super().__init__(paginator)
        self._enricher = enricher

    async def build_actions(self, records: List[Dict[str, Any]], watermark: Optional[datetime]) -> List[Action]:
        contact_ids = [str(contact["id"]) for contact in records if contact.get("id") is not None]
        company_ids = await self._enricher.associations("contacts", "companies", contact_ids)

        actions: List[Action] = []
        for contact in records:
            properties = contact.get("properties") or {}
            email = properties.get("email")
            if not email:
                continue
            created_at = parse_timestamp(contact.get("createdAt"))
            updated_at = parse_timestamp(contact.get("updatedAt")) or created_at
            if created_at is None:
                continue
            is_created = watermark is None or created_at > watermark
            name = f"{properties.get('firstname') or ''} {properties.get('lastname') or ''}".strip()
            user_properties = {
                "company_id": company_ids.get(str(contact.get("id"))),
                "contact_name": name,
                "contact_title": properties.get("jobtitle"),
                "contact_source": properties.get("hs_analytics_source"),
                "contact_status": properties.get("hs_lead_status"),
                "contact_score": _score(properties.get("hubspotscore")),
            }
            actions.append(
                Action(
                    action_name=ActionName.CONTACT_CREATED if is_created else ActionName.CONTACT_UPDATED,
                    action_date=created_at if is_created else updated_at,
                    properties_key="userProperties",
                    properties=drop_empty(user_properties),
                    identity=email,
                )
            )
        return actions
