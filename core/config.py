from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SETTINGS__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    valkey_host: str = Field(default="localhost")
    valkey_port: int = Field(default=6379)

    hubspot_cid: Optional[str] = Field(default=None, validation_alias=AliasChoices("HUBSPOT_CID", "SETTINGS__HUBSPOT_CID"))
    hubspot_cs: Optional[str] = Field(default=None, validation_alias=AliasChoices("HUBSPOT_CS", "SETTINGS__HUBSPOT_CS"))
    hubspot_api_base: str = Field(default="https://api.hubapi.com")
    hubspot_timeout_seconds: float = Field(default=30.0)

    retry_limit: int = Field(default=4, ge=0)
    retry_base_delay_ms: int = Field(default=5000, ge=0)
    page_size: int = Field(default=100, ge=1)
    max_pagination_offset: int = Field(default=9900)
    meeting_tolerance_ms: int = Field(default=1000)
    initial_lookback_years: int = Field(default=4)

    action_flush_threshold: int = Field(default=2000, ge=1)
    sink_concurrency: int = Field(default=100, ge=1)
    sink_queue_name: str = Field(default="analytics:actions")

    accounts_key: str = Field(default="hubspot:accounts")
    persistence_enabled: bool = Field(default=False)

    sync_interval_minutes: int = Field(default=0)
    cron_timezone: str = Field(default="UTC")

    metrics_enabled: bool = Field(default=False)
    prometheus_port: int = Field(default=9001)

    @validator("page_size")
    def cap_page_size(cls, value: int) -> int:
        # search endpoints reject limits above 100
        return min(value, 100)

    @validator("log_level")
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
