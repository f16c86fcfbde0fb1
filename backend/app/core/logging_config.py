"""
Structured logging with emergency-contact redaction.

Log lines from the alert pipeline routinely mention recipient numbers
("[SMS] → +918788293663 accepted as SM..."). Both formatters pass the
rendered message, every string extra and exception text through
``mask_phone_numbers`` so only the last four digits reach the log sink:

    +918788293663  →  +********3663

Context carried per request (set by middleware, extended by the crisis
orchestrator as it moves between states):

    request_id, client_ip, endpoint, method   ← RequestLoggingMiddleware
    requester, state                          ← bind_crisis_context()

Usage:
    from backend.app.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Dispatching to %s", number, extra={"channel": "sms"})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backend.app.core.config import Settings, get_settings

_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context", default={}
)

# E.164: "+" then up to 15 digits; short codes are left alone.
_PHONE_RE = re.compile(r"\+\d{7,15}")
_VISIBLE_DIGITS = 4

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _mask_match(match: "re.Match[str]") -> str:
    digits = match.group(0)[1:]
    hidden = len(digits) - _VISIBLE_DIGITS
    return "+" + "*" * hidden + digits[hidden:]


def mask_phone_numbers(text: str) -> str:
    """Replace every E.164 number in ``text`` with a masked form."""
    if not text or "+" not in text:
        return text
    return _PHONE_RE.sub(_mask_match, text)


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        return mask_phone_numbers(value)
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    if isinstance(value, dict):
        return {k: _redact(v) for k, v in value.items()}
    return value


# ── Request / crisis context ──

def set_request_context(**kwargs: Any) -> None:
    """Replace the request-scoped context (called by middleware)."""
    _request_context.set(kwargs)


def bind_crisis_context(
    *,
    requester: Optional[str] = None,
    state: Optional[str] = None,
) -> None:
    """Add the requester and current orchestrator state to the context."""
    ctx = dict(_request_context.get())
    if requester is not None:
        ctx["requester"] = requester
    if state is not None:
        ctx["state"] = state
    _request_context.set(ctx)


def get_request_context() -> Dict[str, Any]:
    return _request_context.get()


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed via ``extra=`` on the logging call."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


# ── Formatters ──

class JSONFormatter(logging.Formatter):
    """One redacted JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": mask_phone_numbers(record.getMessage()),
        }

        ctx = get_request_context()
        if ctx:
            entry["context"] = _redact(ctx)

        extras = record_extras(record)
        if extras:
            entry["extra"] = _redact(extras)

        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            entry["exception"] = {
                "type": type(exc).__name__,
                "message": mask_phone_numbers(str(exc)),
            }

        return json.dumps(entry, default=str)


class PrettyFormatter(logging.Formatter):
    """
    Coloured console output for development:

        12:04:31 WARNING  [3f2a9c1e asha/fallback_locating] backend.app...: ...
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def _context_tag(self) -> str:
        ctx = get_request_context()
        parts = []
        if ctx.get("request_id"):
            parts.append(str(ctx["request_id"])[:8])
        if ctx.get("requester"):
            crisis = str(ctx["requester"])
            if ctx.get("state"):
                crisis += f"/{ctx['state']}"
            parts.append(crisis)
        return f" [{' '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        line = (
            f"{color}{self.formatTime(record, '%H:%M:%S')} {record.levelname:8s}{self.RESET}"
            f"{self._context_tag()} {record.name}: {mask_phone_numbers(record.getMessage())}"
        )
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            line += f"\n  {type(exc).__name__}: {mask_phone_numbers(str(exc))}"
        return line


# ── Setup ──

def setup_logging(cfg: Optional[Settings] = None) -> None:
    """Install the JSON formatter in production, the pretty one elsewhere."""
    cfg = cfg or get_settings()
    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if cfg.is_production else PrettyFormatter())
    root.addHandler(handler)

    # httpx logs full request URLs at INFO; keep account ids out of the sink.
    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
