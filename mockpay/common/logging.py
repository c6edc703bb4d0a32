"""JSON logging for the mock engine.

Every record carries the HTTP request id (when served over HTTP) and the
charge or customer the current operation touches, so one client test run can
be followed through the log stream.
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from uuid import uuid4

from pythonjsonlogger.json import JsonFormatter

from mockpay.common.config import settings


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
charge_id_ctx: ContextVar[str] = ContextVar("charge_id", default="")
customer_id_ctx: ContextVar[str] = ContextVar("customer_id", default="")

_RESOURCE_CONTEXTS = {"charge_id": charge_id_ctx, "customer_id": customer_id_ctx}


def new_request_id() -> str:
    return f"req_{uuid4().hex[:14]}"


@contextmanager
def resource_context(**ids: str | None) -> Iterator[None]:
    """Tag log records emitted inside the block with `charge_id` / `customer_id`."""

    tokens = [(_RESOURCE_CONTEXTS[name], _RESOURCE_CONTEXTS[name].set(value or "")) for name, value in ids.items()]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class ResourceContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.request_id = request_id_ctx.get()
        record.charge_id = charge_id_ctx.get()
        record.customer_id = customer_id_ctx.get()
        return True


def configure_logging(level: str | None = None) -> None:
    """Send JSON lines to stdout; `level` overrides `MOCKPAY_LOG_LEVEL`."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ResourceContextFilter()
    handler.addFilter(context_filter)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(service_name)s %(request_id)s "
            "%(charge_id)s %(customer_id)s %(message)s"
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level or settings.log_level)
    root.addFilter(context_filter)


logger = logging.getLogger("mockpay")
