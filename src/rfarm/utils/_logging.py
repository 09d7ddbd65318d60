"""Structured logging for the pool manager.

Loggers are built with ``structlog.wrap_logger`` and never touch global
structlog configuration, so tests and the CLI can each hold their own.
"""

import logging
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import Literal, NamedTuple, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3


class Rotation(NamedTuple):
    """Size-based rotation for a log file."""

    max_bytes: int
    backup_count: int


def resolve_level(level: str | None = None) -> int:
    """Map a level name to a ``logging`` level.

    RFARM_DEBUG forces DEBUG. Without an explicit ``level`` the
    RFARM_LOG_LEVEL variable is consulted. Unknown names mean INFO.
    """
    if getenv("RFARM_DEBUG"):
        return logging.DEBUG
    name = level if level is not None else getenv("RFARM_LOG_LEVEL", "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _open_sink(path: Path, level: int, rotation: Rotation | None) -> object:
    if rotation is None:
        return structlog.WriteLoggerFactory(file=path.open("a"))()

    sink = logging.getLogger(f"rfarm.{path.stem}.{id(path)}")
    sink.handlers.clear()
    sink.propagate = False
    sink.setLevel(level)

    handler = RotatingFileHandler(
        path,
        maxBytes=rotation.max_bytes,
        backupCount=rotation.backup_count,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    sink.addHandler(handler)
    return sink


def _renderers(log_format: LogFormatType) -> list[Processor]:
    if log_format == "text":
        return [structlog.dev.ConsoleRenderer(colors=False)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def build_logger(
    path: Path,
    *,
    level: int | None = None,
    log_format: LogFormatType = "json",
    rotation: Rotation | None = None,
) -> FilteringBoundLogger:
    """Build a logger appending to ``path``, creating its directory.

    Args:
        path: Log file.
        level: Threshold. Taken from the environment when None.
        log_format: ``json`` lines or ``text`` key=value lines.
        rotation: Rotate the file by size; append forever when None.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    threshold = level if level is not None else resolve_level()

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        *_renderers(log_format),
    ]
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            _open_sink(path, threshold, rotation),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(threshold),
            context_class=dict,
        ),
    )


def create_pool_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "text",
    log_file: str = "",
    rotation: Rotation | None = Rotation(DEFAULT_MAX_BYTES, DEFAULT_BACKUP_COUNT),
) -> FilteringBoundLogger:
    """Return the logger shared by the pool manager, its workers and the CLI.

    An empty ``log_file`` means ``rfarm.log`` in the platform user log
    directory. Every event carries ``component="pool"``.
    """
    from rfarm.config import get_user_log_path  # noqa: PLC0415

    path = Path(log_file) if log_file else get_user_log_path()
    logger = build_logger(path, level=resolve_level(level), log_format=log_format, rotation=rotation)
    return logger.bind(component="pool")
