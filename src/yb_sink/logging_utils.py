"""Rich logging for the sink process."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Driver and pool loggers echo every statement of every batch.
DRIVER_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "asyncpg")


def resolve_level(level: str) -> Optional[int]:
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else None


def setup_logging(level: str = "INFO", console: Optional[Console] = None) -> None:
    """Route all sink logging through one Rich handler on stderr.

    Driver loggers stay at WARNING unless ``level`` is DEBUG, so that
    per-record bind messages are not buried under SQL echo. An unknown
    level name falls back to INFO with a warning.
    """
    numeric = resolve_level(level)
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=False,
        show_path=False,
        markup=False,
    )
    logging.basicConfig(
        level=numeric if numeric is not None else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    driver_level = logging.DEBUG if numeric == logging.DEBUG else logging.WARNING
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)
    if numeric is None:
        get_logger().warning("Unknown log level %r, using INFO", level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "yb_sink")
