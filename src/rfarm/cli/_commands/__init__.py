"""RFarm CLI commands."""
# pyright: reportUnusedCallResult=false

from cyclopts import App

from ._config import app as config_app
from ._context import CLIContext
from ._run import app as run_app
from ._shared import ExitCode, exit_with_error, get_error_console

__all__ = [
    "CLIContext",
    "ExitCode",
    "config_app",
    "exit_with_error",
    "get_error_console",
    "run_app",
]


def register_commands(app: App) -> None:
    app.command(config_app)
    app.command(run_app)
