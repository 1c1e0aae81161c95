from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    """Base class for failures raised by the sync engine."""


class AuthError(SyncError):
    """The refresh token could not be exchanged for an access token."""


class RemoteError(SyncError):
    TRANSIENT = "transient"
    EXHAUSTED = "exhausted"

    def __init__(self, message: str, kind: str = TRANSIENT, attempts: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.attempts = attempts

    @property
    def exhausted(self) -> bool:
        return self.kind == self.EXHAUSTED


class EnrichmentError(SyncError):
    """An association or batch-read lookup failed."""
