from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from connectors.base import BaseEntitySync
from connectors.models import Action, ActionName, parse_timestamp

# company actions sort ahead of contact actions stamped with the same instant
ACTION_DATE_OFFSET = timedelta(seconds=2)


class CompanySync(BaseEntitySync):
    name = "companies"
    last_modified_property = "hs_lastmodifieddate"
    properties = [
        "name",
        "domain",
        "country",
        "industry",
        "description",
        "annualrevenue",
        "numberofemployees",
        "hs_lead_status",
    ]

    async def build_actions(self, records: List[Dict[str, Any]], watermark: Optional[datetime]) -> List[Action]:
        actions: List[Action] = []
        for company in records:
            properties = company.get("properties")
            if not properties:
                continue
            created_at = parse_timestamp(company.get("createdAt"))
            updated_at = parse_timestamp(company.get("updatedAt")) or created_at
            if created_at is None:
                continue
            is_created = watermark is None or created_at > watermark
            action_date = (created_at if is_created else updated_at) - ACTION_DATE_OFFSET
            actions.append(
                Action(
                    action_name=ActionName.COMPANY_CREATED if is_created else ActionName.COMPANY_UPDATED,
                    action_date=action_date,
                    properties_key="companyProperties",
                    properties={
                        "company_id": company.get("id"),
                        "company_domain": properties.get("domain"),
                        "company_industry": properties.get("industry"),
                    },
                )
            )
        return actions
