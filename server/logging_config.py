"""
Structured logging configuration for the GitRight API.

- Production (ENVIRONMENT=production): one JSON object per line
- Development (default): Human-readable format for terminal

Every handler carries a RedactingFilter: GitHub OAuth tokens, JWTs and
caller-supplied Gemini keys pass through this service and must never reach
the logs.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone

REDACTED = "[REDACTED]"

SENSITIVE_PATTERNS = [
    re.compile(r"\bgh[opusr]_[A-Za-z0-9]{8,}"),  # GitHub tokens
    re.compile(r"\bAIza[0-9A-Za-z_\-]{20,}"),  # Google API keys
    re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+"),  # JWTs
    re.compile(r"(?i)(bearer\s+)[\w.\-]+"),
]

# Request attributes passed through `extra=` by the HTTP middleware
REQUEST_FIELDS = ("method", "path", "status_code", "duration_ms")


def redact(text: str) -> str:
    for pattern in SENSITIVE_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


class RedactingFilter(logging.Filter):
    """Masks credentials in the rendered message before any formatter sees it."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "line": record.lineno,
        }
        for name in REQUEST_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = redact(self.formatException(record.exc_info))

        return json.dumps(log_entry)


def build_handler(environment: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if environment.lower() == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    handler.addFilter(RedactingFilter())
    return handler


def setup_logging(environment: str = "development", log_level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove any existing handlers to avoid duplicates on reload
    root_logger.handlers.clear()
    root_logger.addHandler(build_handler(environment))

    for name in ("uvicorn.access", "sqlalchemy.engine", "httpx", "google_genai"):
        logging.getLogger(name).setLevel(logging.WARNING)
