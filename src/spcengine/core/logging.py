"""Structured logging configuration using structlog.

Call configure_logging() once at application startup (before any log calls).
SPCENGINE_LOG_FORMAT selects the renderer:
  - "console" (default): colored, human-readable output
  - "json": one JSON object per line

Capability indices are ``math.inf`` for zero-variance data, which JSON cannot
represent, so non-finite floats in event dicts are rendered as strings.

The computational modules never log; only SPCEngine emits events, through the
logger it is given.
"""

import logging
import math
import sys
from typing import Any, TextIO

import structlog

from spcengine.core.config import get_settings
from spcengine.core.exceptions import ConfigurationError

LOG_FORMATS = ("console", "json")


def render_non_finite(
    logger: Any, method_name: str, event_dict: structlog.typing.EventDict
) -> structlog.typing.EventDict:
    """Replace inf/nan float values with "inf", "-inf" or "nan"."""
    for key, value in event_dict.items():
        if isinstance(value, float) and not math.isfinite(value):
            event_dict[key] = str(value)
    return event_dict


def _renderer(log_format: str) -> structlog.typing.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(
    log_format: str = "console",
    log_level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route structlog events through stdlib logging with a structlog formatter.

    Args:
        log_format: "console" or "json"
        log_level: Minimum level name; unknown names fall back to INFO
        stream: Output stream (stderr if None)

    Raises:
        ConfigurationError: If log_format is not a known format
    """
    if log_format not in LOG_FORMATS:
        raise ConfigurationError(
            f"Unknown log format {log_format!r}, expected one of {LOG_FORMATS}"
        )

    pre_chain: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        render_non_finite,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def configure_logging_from_settings() -> None:
    """Configure logging from SPCENGINE_LOG_FORMAT / SPCENGINE_LOG_LEVEL."""
    settings = get_settings()
    configure_logging(log_format=settings.log_format, log_level=settings.log_level)
