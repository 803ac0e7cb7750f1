"""Log formatters for JSON and console output."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from vault_broker.common.logging import get_log_context


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Only allow-listed extra fields are serialized, so credentials passed
    as extras never reach the log.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        "instance",
        "auth_method",
        "mount",
        "namespace",
        "role",
        "api_url",
        "api_method",
        "api_endpoint",
        "http_status",
        "duration_ms",
        "lease_duration",
        "renewable",
        "state",
        "waiters",
        "error_category",
        "error_message",
    ]

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        ctx = get_log_context()
        if ctx["command"]:
            log_entry["command"] = ctx["command"]

        # Add source location for DEBUG/ERROR
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter.

    Includes context when available.
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()

        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
        ]

        if ctx["command"]:
            parts.append(f"[{ctx['command']}]")

        auth_method = getattr(record, "auth_method", None)
        if auth_method:
            parts.append(f"[{auth_method}]")

        prefix = " - ".join(parts)
        message = f"{prefix} - {record.getMessage()}"

        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return message
