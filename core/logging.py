from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

hub_id_ctx_var: ContextVar[str] = ContextVar("hub_id", default="-")


class HubIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.hub_id = hub_id_ctx_var.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    log_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(hub_id)s %(message)s")
    log_handler.setFormatter(formatter)
    log_handler.addFilter(HubIDFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(log_handler)


def set_account_context(hub_id: Optional[Any] = None) -> str:
    value = str(hub_id) if hub_id is not None else "-"
    hub_id_ctx_var.set(value)
    return value


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    logger.info(json.dumps({"event": event, **fields}, default=str))


configure_logging()
