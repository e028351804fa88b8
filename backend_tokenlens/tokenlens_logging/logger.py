"""
structlog configuration for the API, chain, explorer and store layers.

One line per event. Every line carries ``event_type`` (a snake_case name such
as ``token_balance_fetched``), ``level``, ``timestamp`` (ISO 8601, UTC) and the
``logger`` it came from; callers add keyword fields. Addresses go through
short_address() so lines stay readable.

LOG_LEVEL picks the threshold (default INFO). LOG_FORMAT=json (default)
renders JSON; anything else renders for a terminal.

Imports nothing from backend_tokenlens, so any module may import it first.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _event_fields(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's ``event`` becomes ``event_type``; fill in timestamp and message."""
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog(level: int = LOG_LEVEL_VALUE, log_format: str = LOG_FORMAT) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _event_fields,
            _renderer(log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger bound to ``name`` (pass ``__name__``).

        logger = get_logger(__name__)
        logger.info("token_balance_fetched", token=short_address(token), block=19000000)
    """
    return structlog.get_logger(name).bind(logger=name)


def short_address(address: str | None) -> str:
    """0x6b175474...271d0f -> 0x6b17...1d0f; short or empty values pass through."""
    if not address:
        return ""
    if len(address) <= 14:
        return address
    return f"{address[:6]}...{address[-4:]}"
