from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from connectors.base import BaseEntitySync
from connectors.enrichment import AssociationEnricher
from connectors.models import Action, ActionName, parse_timestamp
from connectors.paginator import WindowedPaginator
from core.config import settings


class MeetingSync(BaseEntitySync):
    name = "meetings"
    last_modified_property = "hs_lastmodifieddate"
    properties = [
        "hs_meeting_title",
        "hs_meeting_start_time",
        "hs_meeting_end_time",
        "hs_meeting_outcome",
        "hs_createdate",
        "hs_lastmodifieddate",
    ]

    def __init__(
        self,
        paginator: WindowedPaginator,
        enricher: AssociationEnricher,
        tolerance_ms: Optional[int] = None,
    ) -> None:
        super().__init__(paginator)
        self._enricher = enricher
        self._tolerance_ms = settings.meeting_tolerance_ms if tolerance_ms is None else tolerance_ms

    async def build_actions(self, records: List[Dict[str, Any]], watermark: Optional[datetime]) -> List[Action]:
        meeting_ids = [str(meeting["id"]) for meeting in records if meeting.get("id") is not None]
        contact_ids = await self._enricher.associations("meetings", "contacts", meeting_ids)
        emails = await self._enricher.resolve_emails(contact_ids.values())

        actions: List[Action] = []
        for meeting in records:
            created_at = parse_timestamp(meeting.get("createdAt"))
            updated_at = parse_timestamp(meeting.get("updatedAt")) or created_at
            if created_at is None:
                continue
            is_created = self.is_created(created_at, updated_at)
            contact_id = contact_ids.get(str(meeting.get("id")))
            email = emails.get(contact_id) if contact_id else None
            properties = meeting.get("properties") or {}
            actions.append(
                Action(
                    action_name=ActionName.MEETING_CREATED if is_created else ActionName.MEETING_UPDATED,
                    action_date=created_at if is_created else updated_at,
                    properties_key="meetingProperties",
                    properties={
                        "meeting_id": meeting.get("id"),
                        "associated_contact_email": email,
                        "meeting_title": properties.get("hs_meeting_title") or "Unknown Title",
                        "meeting_start_time": properties.get("hs_meeting_start_time"),
                        "meeting_end_time": properties.get("hs_meeting_end_time"),
                        "meeting_outcome": properties.get("hs_meeting_outcome") or "No Outcome",
                        "created_date": properties.get("hs_createdate"),
                        "last_modified_date": properties.get("hs_lastmodifieddate"),
                        "archived": bool(meeting.get("archived", False)),
                    },
                    identity=email,
                )
            )
        return actions

    def is_created(self, created_at: datetime, updated_at: datetime) -> bool:
        return abs((updated_at - created_at).total_seconds() * 1000) <= self._tolerance_ms
