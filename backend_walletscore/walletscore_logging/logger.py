"""
Logger setup for the scoring service.

Every record carries event_type, level, an ISO-8601 UTC timestamp and the
emitting module. Scoring runs bind wallet, chain_id and score_type once, so one
request can be traced from the explorer fetches through signing.

Imports nothing from backend_walletscore; any package may import it first.
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

# "json" or "console"
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """UTC ISO-8601 timestamp unless the caller passed one."""
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type_key(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Expose the event name as event_type, and as message when none was given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _shorten_wallet(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Trim long wallet values so logs stay greppable (0x1234abcd...)."""
    wallet = event_dict.get("wallet")
    if isinstance(wallet, str) and len(wallet) > 18:
        event_dict["wallet"] = wallet[:10] + "..." + wallet[-6:]
    return event_dict


def configure_structlog(log_format: str | None = None, level: int | None = None) -> None:
    """Install the processor chain; LOG_FORMAT=json renders JSON lines, anything else the console renderer."""
    fmt = (log_format or LOG_FORMAT).strip().lower()
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _shorten_wallet,
        _event_type_key,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level if level is not None else LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger with `logger` bound to the module name.

        logger = get_logger(__name__)
        logger.info("explorer_transactions_fetched", wallet=addr, action="txlist", items=42)

    renders as {"event_type": "explorer_transactions_fetched", "wallet": "0x5aaeb605...1beaed",
    "action": "txlist", "items": 42, "level": "info", "logger": "...", "timestamp": "..."}.
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet: str, chain_id: int | None = None) -> structlog.BoundLogger:
    """Logger for one wallet on one chain; chain_id is omitted when None."""
    log = get_logger("backend_walletscore").bind(wallet=wallet)
    if chain_id is not None:
        log = log.bind(chain_id=chain_id)
    return log
