"""Exit codes and error reporting used by every command."""

from enum import IntEnum
from typing import Never

from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Process exit status of ``rfarm`` commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    CONFIG_ERROR = 2
    WORKER_ERROR = 3
    IO_ERROR = 4


def get_error_console() -> Console:
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.LOAD_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Report ``message`` on stderr (or ``console``) and exit with ``code``."""
    target = console or get_error_console()
    target.print(f"[red]Error:[/red] {message}", markup=True, highlight=False)
    raise SystemExit(code)
