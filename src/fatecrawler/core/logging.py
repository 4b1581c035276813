"""Structured logging for the Fatecrawler turn engine.

Every entry is tagged with the save slot being played and the turn in
flight, so a log of several sessions can be read one playthrough at a
time. Bootstrap binds the slot; the orchestrator binds the turn.

Example:
    >>> from fatecrawler.core.logging import bind_session, bind_turn, get_logger
    >>> bind_session("autosave")
    >>> bind_turn(3)
    >>> get_logger(__name__).info("Turn applied", hp=21)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


APP_NAME = "fatecrawler"

# Context keys carried onto every entry, in display order.
SESSION_KEYS = ("slot", "turn")

# Third-party loggers that log every request at INFO.
NOISY_LOGGERS = ("openai", "httpx", "httpcore")


# =============================================================================
# Processors
# =============================================================================


def add_session_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag an entry with the app name and the bound slot and turn.

    Keys passed to the log call itself win over bound ones. Other bound
    context is not copied; only the session keys travel.

    Args:
        logger: The wrapped logger instance.
        method_name: Name of the logging method called.
        event_dict: The event dictionary to modify.

    Returns:
        The event dictionary with session context.
    """
    event_dict.setdefault("app", APP_NAME)
    bound = structlog.contextvars.get_contextvars()
    for key in SESSION_KEYS:
        if key in bound:
            event_dict.setdefault(key, bound[key])
    return event_dict


# =============================================================================
# Setup
# =============================================================================


def configure_logging(*, level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog and route third-party loggers through stdlib.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render JSON lines instead of the coloured console format.
    """
    processors: list[Processor] = [
        add_session_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )

    log_level = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=log_level,
        stream=sys.stdout,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically with ``__name__``."""
    return structlog.get_logger(name)


# =============================================================================
# Session context
# =============================================================================


def bind_session(slot: str) -> None:
    """Start tagging entries with ``slot``, dropping any turn from an earlier game."""
    structlog.contextvars.unbind_contextvars("turn")
    structlog.contextvars.bind_contextvars(slot=slot)


def bind_turn(turn: int) -> None:
    """Tag subsequent entries with the turn being played."""
    structlog.contextvars.bind_contextvars(turn=turn)


def clear_session() -> None:
    structlog.contextvars.unbind_contextvars(*SESSION_KEYS)


__all__ = [
    "APP_NAME",
    "SESSION_KEYS",
    "add_session_context",
    "configure_logging",
    "get_logger",
    "bind_session",
    "bind_turn",
    "clear_session",
]
