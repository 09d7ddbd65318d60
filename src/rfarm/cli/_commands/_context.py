# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""Per-invocation state shared by the ``rfarm`` commands."""

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

from structlog.typing import FilteringBoundLogger

from rfarm.config import Config, get_user_config_path

_active: contextvars.ContextVar["CLIContext | None"] = contextvars.ContextVar(
    "rfarm_cli_context", default=None
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """What the global options resolved to for this invocation.

    ``config_error`` holds the reason the config file was ignored, if it
    was. Commands that would act on a broken config check it and stop.
    """

    config: Config = field(repr=False)
    verbose: bool = False
    config_error: str | None = None
    logger: FilteringBoundLogger | None = field(default=None, repr=False)

    @property
    def settings_path(self) -> Path:
        """Return the file the desired worker count is persisted in."""
        return self.config.path or get_user_config_path()

    @classmethod
    def get_current(cls) -> Self:
        """Return the active context, or one built from defaults."""
        ctx = _active.get()
        if ctx is None:
            return cls(config=Config.from_dict({}))
        return ctx  # pyright: ignore[reportReturnType]

    @contextmanager
    def activate(self) -> Iterator[Self]:
        """Make this the active context for the duration of the block."""
        token = _active.set(self)
        try:
            yield self
        finally:
            _active.reset(token)

    @classmethod
    def clear(cls) -> None:
        _ = _active.set(None)
