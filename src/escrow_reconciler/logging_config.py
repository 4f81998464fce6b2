"""Structured logging for the reconciler, built on structlog.

Degraded ledger reads are warnings, not exceptions, so the log is the only
record of why a history came back partial. Each public query binds its
transaction id and block window with ``reconciliation_context`` and every
line logged underneath carries them.

Usage:
    from escrow_reconciler.logging_config import setup_logging, get_logger
    setup_logging(log_level="INFO", json_logs=True)
    logger = get_logger(__name__)
    with reconciliation_context(transaction_id="1"):
        logger.warning("aggregator.kind_failed", kind="Evidence", error="timeout")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

# Ledger client transports log every request at DEBUG
QUIET_LOGGERS = ("web3", "urllib3", "httpx", "httpcore", "websockets")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _render_chain(json_logs: bool) -> list[structlog.types.Processor]:
    if json_logs:
        # Tracebacks from aggregator.history_failed become nested JSON
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Route structlog through the stdlib root logger.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        json_logs: Render JSON lines instead of console output.
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(json_logs),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_settings() -> None:
    """Configure logging from the cached Settings."""
    from escrow_reconciler.config import get_settings

    settings = get_settings()
    setup_logging(log_level=settings.app_log_level, json_logs=settings.use_json_logs)


@contextmanager
def reconciliation_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every log line emitted inside the block.

    None values are skipped so a contract-wide query does not log
    ``transaction_id=None`` on every line.
    """
    bound = {key: value for key, value in fields.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
