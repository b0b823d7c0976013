"""Process-wide logging setup; analytics modules only ask for named loggers."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from config.settings import BillingSettings

__all__ = ["JsonFormatter", "configure_logging", "get_logger", "setup_logging"]

_STANDARD_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_PACKAGE_LOGGERS = ("analytics", "core", "config")


class JsonFormatter(logging.Formatter):
    """One JSON object per record; trace event fields are merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "trace_fields", None)
        if isinstance(fields, dict):
            payload.update(fields)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Replace the root handlers with a single stdout handler.

    ``format_type`` is ``"standard"`` or ``"json"``; unknown level names fall
    back to INFO.
    """

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)
    for name in _PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(numeric_level)


def configure_logging(settings: Optional[BillingSettings] = None) -> None:
    """Apply ``BILLING_LOG_LEVEL``/``BILLING_LOG_FORMAT``; call once at application startup."""

    if settings is None:
        # config.settings imports the analytics package, which imports this module
        from config.settings import get_settings

        settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
