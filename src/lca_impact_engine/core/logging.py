"""Logging configuration helpers."""

from __future__ import annotations

import logging
from typing import Any

import structlog

from .config import Settings, get_settings
from .constants import CALCULATION_VERSION


def configure_logging(
    level: str | None = None,
    *,
    settings: Settings | None = None,
    log_format: str | None = None,
) -> None:
    """Configure standard logging and structlog for engine callers.

    Every event carries the calculation version so log lines can be matched
    to the result documents they describe; callers may bind further context
    (for example the assessed entity) with ``structlog.contextvars``.
    """
    resolved_settings = settings or get_settings()
    effective_level = level or resolved_settings.log_level
    numeric_level = getattr(logging, effective_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            level=numeric_level,
        )
    root_logger.setLevel(numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            add_calculation_version,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            build_renderer(log_format or resolved_settings.log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger."""
    return structlog.get_logger(name)


def add_calculation_version(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("calculation_version", CALCULATION_VERSION)
    return event_dict


def build_renderer(log_format: str) -> Any:
    """JSON lines for pipelines, aligned key=value columns for terminals."""
    if log_format.strip().lower() == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer(sort_keys=True)
