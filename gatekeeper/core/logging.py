"""Gatekeeper logging: JSON lines in production, readable lines in development.

Every handler carries a ``SecretRedactionFilter`` so a bearer token or the
downstream webhook URL that slips into a message is masked before output.
"""

import json
import logging
import re
import sys
from typing import Literal

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Attributes present on every LogRecord; anything else came in via ``extra=``
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}

_SECRET_PATTERNS = (
    # Issued tokens are 64 lowercase hex characters
    (re.compile(r"\b[0-9a-f]{64}\b"), "[token]"),
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), r"\1[redacted]"),
    (re.compile(r"https://(?:\w+\.)?discord(?:app)?\.com/api/webhooks/\S+"), "[webhook-url]"),
)


def redact(text: str) -> str:
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Masks tokens and webhook URLs in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    json.dumps() escapes quotes and newlines, so a hostile userId cannot
    forge extra log lines. Values passed through ``extra=`` become fields.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable output
    """
    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(SecretRedactionFilter())

    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper()))

    # RequestLoggingMiddleware already records every request
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    # httpx logs every outbound request at INFO, webhook URL included
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger("gatekeeper").info(
        f"Logging configured: level={level}, format={format_type}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``gatekeeper`` namespace."""
    return logging.getLogger(f"gatekeeper.{name}")
