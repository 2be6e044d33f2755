"""
Logging Utilities

Structured traversal events go through structlog, bound to the standard
library logging tree so that handlers, levels and pytest's caplog all apply.
"""

import logging
import sys
from typing import Any, List, Optional

import structlog

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

RENDERERS = ("console", "keyvalue", "json")


def _shared_processors() -> List[Any]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(name: str) -> Any:
    if name == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    if name == "json":
        return structlog.processors.JSONRenderer()
    return structlog.processors.KeyValueRenderer(key_order=["event"], sort_keys=True)


def _configure_structlog(renderer: str) -> None:
    structlog.configure(
        processors=_shared_processors() + [_renderer(renderer)],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger for the specified name

    Configures structlog on first use when the application has not done so.
    The library never installs handlers by itself.
    """
    if not structlog.is_configured():
        _configure_structlog("keyvalue")
    return structlog.get_logger(name)


def configure_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    renderer: str = "console",
) -> None:
    """
    Configure logging for applications embedding the engine

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Format string for the standard library handler
        renderer: structlog renderer, one of console, keyvalue, json
    """
    if renderer not in RENDERERS:
        raise ValueError(f"Unknown renderer: {renderer}. Expected one of {RENDERERS}")

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    structlog.reset_defaults()
    _configure_structlog(renderer)
