"""Structured JSON logging configuration."""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from workshop_enrollment_ms.shared.core.settings import get_settings

# Ids callers attach through ``extra=``
_EXTRA_FIELDS = ("event_id", "enrollment_id", "workshop_id", "entry_id", "session_id")

_TOKEN_PARAM = re.compile(r"(waitlist_token=)[^&\s\"]+")


def redact_claim_tokens(text: str) -> str:
    """Mask every ``waitlist_token`` query value in ``text``."""
    return _TOKEN_PARAM.sub(r"\1[redacted]", text)


def token_prefix(token: str) -> str:
    """Loggable form of a claim token (first 8 characters only)."""
    return f"{token[:8]}..."


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON with consistent fields:
    - timestamp (ISO 8601)
    - level
    - logger (module name)
    - message
    - event_id / enrollment_id / workshop_id / entry_id / session_id when present
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = str(getattr(record, name))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ClaimTokenRedactionFilter(logging.Filter):
    """Strips claim tokens from access-log lines (claim redemption URLs)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.args = tuple(
                redact_claim_tokens(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        if isinstance(record.msg, str):
            record.msg = redact_claim_tokens(record.msg)
        return True


def configure_logging() -> None:
    """
    Configure application logging with the JSON formatter.

    Reads LOG_LEVEL from settings (default: INFO) and writes to stderr.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").addFilter(ClaimTokenRedactionFilter())

    # Quiet chatty third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )
