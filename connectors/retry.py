from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, RetryCallState, RetryError, stop_after_attempt

from connectors.errors import AuthError, RemoteError
from connectors.hubspot_auth import CredentialRefresher
from connectors.models import Account
from core.config import settings
from core.metrics import REMOTE_EXHAUSTED, REMOTE_RETRIES

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_seconds(attempt_number: int, base_delay_ms: int) -> float:
    """Delay after failed attempt ``attempt_number`` (1-based): base * 2**n."""
    return base_delay_ms * 2 ** attempt_number / 1000


class RetryingCaller:
    """Runs one idempotent HubSpot read with bounded retries.

    Between attempts the account's credential is refreshed when it has
    expired. A failed refresh is logged and the call is retried with the
    stale token anyway.
    """

    def __init__(
        self,
        refresher: CredentialRefresher,
        retry_limit: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._refresher = refresher
        self._retry_limit = settings.retry_limit if retry_limit is None else retry_limit
        self._base_delay_ms = settings.retry_base_delay_ms if base_delay_ms is None else base_delay_ms
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._retry_limit + 1

    async def call(self, account: Account, operation: Callable[[], Awaitable[T]], description: str = "hubspot call") -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            sleep=self._sleep,
            before_sleep=lambda state: self._log_failure(state, description),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        await self._refresh_if_expired(account)
                    result = await operation()
        except RetryError as exc:
            REMOTE_EXHAUSTED.labels(description).inc()
            cause = exc.last_attempt.exception()
            raise RemoteError(
                f"{description} failed after {self.max_attempts} attempts: {cause}",
                kind=RemoteError.EXHAUSTED,
                attempts=self.max_attempts,
            ) from cause
        return result

    def _wait(self, state: RetryCallState) -> float:
        return backoff_seconds(state.attempt_number, self._base_delay_ms)

    def _log_failure(self, state: RetryCallState, description: str) -> None:
        REMOTE_RETRIES.labels(description).inc()
        outcome = state.outcome.exception() if state.outcome else None
        logger.warning(
            "Transient HubSpot failure, retrying",
            extra={
                "operation": description,
                "attempt": state.attempt_number,
                "error_kind": RemoteError.TRANSIENT,
                "error": str(outcome),
            },
        )

    async def _refresh_if_expired(self, account: Account) -> None:
        if not account.token_expired():
            return
        try:
            await self._refresher.refresh(account)
        except AuthError as exc:
            logger.warning("Token refresh failed; retrying with stale token", extra={"error": str(exc)})
