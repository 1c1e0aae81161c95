from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from prometheus_client import start_http_server

from apps.workers.action_queue import ActionBatchingQueue
from apps.workers.schedulers.cron import add_sync_job, configure_scheduler
from apps.workers.sink import ActionSink, ValkeySink
from connectors import (
    AccountStore,
    AssociationEnricher,
    BaseEntitySync,
    CompanySync,
    ContactSync,
    CredentialRefresher,
    HubSpotClient,
    MeetingSync,
    RetryingCaller,
    WindowedPaginator,
)
from connectors.models import Account, AccountReport
from core.config import settings
from core.logging import configure_logging, set_account_context
from core.metrics import STAGE_FAILURES, registry

logger = logging.getLogger("hubsync.worker")


class SyncOrchestrator:
    """Runs every stored HubSpot account through refresh, the entity passes and a final drain.

    A failing stage is logged and skipped; the remaining stages and accounts
    still run. Only failing to load the accounts aborts a run.
    """

    def __init__(
        self,
        store: Optional[AccountStore] = None,
        client: Optional[HubSpotClient] = None,
        sink: Optional[ActionSink] = None,
        refresher: Optional[CredentialRefresher] = None,
        caller: Optional[RetryingCaller] = None,
        queue_factory: Optional[Callable[[ActionSink], ActionBatchingQueue]] = None,
    ) -> None:
        self._store = store or AccountStore()
        self._client = client or HubSpotClient()
        self._sink = sink or ValkeySink()
        self._refresher = refresher or CredentialRefresher(self._client)
        self._caller = caller or RetryingCaller(self._refresher)
        self._queue_factory = queue_factory or ActionBatchingQueue
        paginator = WindowedPaginator(self._client, self._caller)
        enricher = AssociationEnricher(self._client)
        self._stages: Sequence[Tuple[str, BaseEntitySync]] = (
            ("syncPeople", ContactSync(paginator, enricher)),
            ("syncOrganizations", CompanySync(paginator)),
            ("syncMeetings", MeetingSync(paginator, enricher)),
        )

    async def run(self) -> List[AccountReport]:
        logger.info("Start pulling data from HubSpot")
        accounts = await self._store.load_accounts()
        reports = [await self.run_account(account) for account in accounts]
        set_account_context(None)
        logger.info("Finished pulling data from HubSpot", extra={"accounts": len(reports)})
        return reports

    async def run_account(self, account: Account) -> AccountReport:
        set_account_context(account.hub_id)
        report = AccountReport(hub_id=account.hub_id)
        logger.info("Start processing account")

        self._client.set_access_token(account.access_token)
        try:
            await self._refresher.refresh(account)
        except Exception as exc:
            self._stage_failed(report, "refreshAccessToken", exc)

        queue = self._queue_factory(self._sink)
        for stage, entity_sync in self._stages:
            try:
                report.synced[entity_sync.name] = await entity_sync.sync(account, queue)
            except Exception as exc:
                self._stage_failed(report, stage, exc)
                continue
            try:
                await self._store.save_account(account)
            except Exception as exc:
                self._stage_failed(report, "saveAccount", exc)

        try:
            await queue.drain()
        except Exception as exc:
            self._stage_failed(report, "drainQueue", exc)

        logger.info("Finish processing account", extra={"synced": report.synced, "failed": report.failed})
        return report

    async def close(self) -> None:
        await self._client.close()

    def _stage_failed(self, report: AccountReport, stage: str, exc: BaseException) -> None:
        report.failed.append(stage)
        STAGE_FAILURES.labels(stage).inc()
        logger.error(
            "Account stage failed",
            exc_info=exc,
            extra={"operation": stage, "hub_id": report.hub_id},
        )


async def run_once() -> List[AccountReport]:
    orchestrator = SyncOrchestrator()
    try:
        return await orchestrator.run()
    finally:
        await orchestrator.close()


async def run_scheduled(interval_minutes: int) -> None:
    scheduler = configure_scheduler()
    add_sync_job(scheduler, run_once, interval_minutes)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def main() -> None:
    configure_logging(settings.log_level)
    if settings.metrics_enabled:
        start_http_server(settings.prometheus_port, registry=registry)
    if settings.sync_interval_minutes > 0:
        asyncio.run(run_scheduled(settings.sync_interval_minutes))
    else:
        asyncio.run(run_once())


if __name__ == "__main__":
    main()
