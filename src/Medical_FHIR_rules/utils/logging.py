"""Structlog configuration and correlation scopes for rule-core runs.

Key Responsibilities:
    - Route Structlog events through the standard library as JSON lines
    - Scrub configured sensitive keys, including inside nested values
    - Bind a correlation identifier for the duration of a check run so every
      event emitted underneath it can be tied back to that run

Collaborators:
    - Upstream: Embedding applications call :func:`configure_logging` once;
      :class:`SpecHintService` opens a :func:`correlation_scope` per check
    - Downstream: ``structlog`` and the ``logging`` root logger

Side Effects:
    - Installs one named stdout handler on the root logger, replacing the one
      installed by a previous call and leaving foreign handlers untouched
    - Binds ``correlation_id`` in Structlog's context variables

Thread Safety:
    - Configuration is process-global and belongs in startup code
    - Correlation scopes use ``contextvars`` and are safe across asyncio tasks
"""

# ==============================================================================
# IMPORTS
# ==============================================================================

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Callable

import structlog

from Medical_FHIR_rules.config.settings import LoggingSettings

_HANDLER_NAME = "medical_fhir_rules"
_CORRELATION_KEY = "correlation_id"
_MASK = "***"

# ==============================================================================
# PROCESSORS
# ==============================================================================


def _scrubber(
    scrub_fields: Iterable[str],
) -> Callable[[Any, str, dict[str, Any]], dict[str, Any]]:
    """Build a processor masking ``scrub_fields`` (case-insensitive) at any depth."""
    lowered = frozenset(field.lower() for field in scrub_fields)

    def scrub(value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: _MASK if str(key).lower() in lowered else scrub(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [scrub(item) for item in value]
        return value

    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        if not lowered:
            return event_dict
        return scrub(event_dict)

    return processor


def _level_value(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return logging.INFO


# ==============================================================================
# CONFIGURATION
# ==============================================================================


def configure_logging(
    settings: LoggingSettings | None = None,
    *,
    level: int | str | None = None,
) -> None:
    """Configure Structlog to emit scrubbed JSON through the root logger.

    Args:
        settings: Logging section of :class:`AppSettings`; defaults are used
            when omitted.
        level: Optional override for ``settings.level``.
    """
    settings = settings or LoggingSettings()
    level_value = _level_value(level if level is not None else settings.level)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level_value)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _scrubber(settings.scrub_fields),
            structlog.processors.JSONRenderer(sort_keys=True, default=str),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


# ==============================================================================
# CORRELATION SCOPES
# ==============================================================================


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation identifier for the enclosed block.

    An explicit ``correlation_id`` wins; otherwise an identifier already bound
    by an outer scope is reused, and a fresh one is generated as a last resort.
    The previous binding is restored on exit.
    """
    value = correlation_id or get_correlation_id() or uuid.uuid4().hex
    with structlog.contextvars.bound_contextvars(**{_CORRELATION_KEY: value}):
        yield value


def get_correlation_id() -> str | None:
    """Return the currently bound correlation identifier, if any."""
    return structlog.contextvars.get_contextvars().get(_CORRELATION_KEY)


__all__ = ["configure_logging", "correlation_scope", "get_correlation_id"]
