from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, Field, validator


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a HubSpot timestamp (ISO 8601 string or epoch milliseconds) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.isdigit()):
        return pendulum.from_timestamp(int(value) / 1000)
    return pendulum.parse(value)


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class LastPulledDates(BaseModel):
    model_config = ConfigDict(extra="allow")

    companies: Optional[datetime] = None
    contacts: Optional[datetime] = None
    meetings: Optional[datetime] = None

    @validator("companies", "contacts", "meetings")
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Account(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    hub_id: int = Field(alias="hubId")
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    last_pulled_dates: LastPulledDates = Field(default_factory=LastPulledDates, alias="lastPulledDates")

    @validator("expires_at")
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def token_expired(self, now: Optional[datetime] = None) -> bool:
        # an unknown expiry counts as expired
        if self.expires_at is None:
            return True
        return (now or datetime.now(timezone.utc)) > self.expires_at

    def watermark(self, entity: str) -> Optional[datetime]:
        return getattr(self.last_pulled_dates, entity, None)

    def advance_watermark(self, entity: str, value: datetime) -> None:
        setattr(self.last_pulled_dates, entity, value)


class ActionName(str, Enum):
    COMPANY_CREATED = "Company Created"
    COMPANY_UPDATED = "Company Updated"
    CONTACT_CREATED = "Contact Created"
    CONTACT_UPDATED = "Contact Updated"
    MEETING_CREATED = "Meeting Created"
    MEETING_UPDATED = "Meeting Updated"


@dataclass
class Action:
    action_name: ActionName
    action_date: datetime
    properties_key: str
    properties: Dict[str, Any]
    identity: Optional[str] = None
    include_in_analytics: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "actionName": self.action_name.value,
            "actionDate": self.action_date.isoformat(),
            "includeInAnalytics": self.include_in_analytics,
            self.properties_key: self.properties,
        }
        if self.identity is not None:
            payload["identity"] = self.identity
        return payload


@dataclass
class SyncWindow:
    lower_bound: datetime
    upper_bound: datetime
    cursor: Optional[int] = None
    bucketed: bool = False


@dataclass
class Page:
    records: List[Dict[str, Any]]
    next_window: Optional[SyncWindow] = None


@dataclass
class AccountReport:
    hub_id: int
    synced: Dict[str, int] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
