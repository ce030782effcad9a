from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional, Union

# Set per request by the HTTP middleware.
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
actor_role_var: ContextVar[Optional[str]] = ContextVar("actor_role", default=None)

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | role=%(actor_role)s | %(message)s"
)


class LoggingContextFilter(logging.Filter):
    """Stamp each record with the request's correlation id and acting role ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        record.actor_role = actor_role_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Send all InspectFlow logging to stdout, tagged with correlation id and role."""
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
