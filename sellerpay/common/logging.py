"""Structured JSON logging with request context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from sellerpay.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
http_method_ctx: ContextVar[str] = ContextVar("http_method", default="")
http_path_ctx: ContextVar[str] = ContextVar("http_path", default="")


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.http_method = http_method_ctx.get()
        record.http_path = http_path_ctx.get()
        return True


def configure_logging(level: str | None = None) -> None:
    """Configure root logger once per service process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(http_method)s %(http_path)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level or settings.log_level)
    root.addFilter(context_filter)


logger = logging.getLogger("sellerpay")
