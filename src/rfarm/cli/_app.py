"""Entry point and global options of the ``rfarm`` command."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from rfarm.config import safe_load_config
from rfarm.utils import create_pool_logger

from ._commands import register_commands
from ._commands._context import CLIContext


def _build_context(config_path: Path | None, *, verbose: bool) -> CLIContext:
    config, config_error = safe_load_config(config_path=config_path)
    logger = create_pool_logger(
        level=config.logging.level.value,
        log_format=config.logging.format.value,  # type: ignore[arg-type]
        log_file=config.logging.file,
    )
    return CLIContext(config=config, verbose=verbose, config_error=config_error, logger=logger)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Assemble the ``rfarm`` application with its subcommands.

    Global options are handled by the meta app, which loads config, opens
    the log and then dispatches the remaining tokens.
    """
    app = App(
        name="rfarm",
        help="Local render worker pool manager.",
        help_on_error=True,
        console=console or Console(),
        error_console=error_console or Console(stderr=True),
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _dispatch(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Print extra detail")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Config file to use instead of the user default")
        ] = None,
    ) -> None:
        with _build_context(config, verbose=verbose).activate():
            app(tokens)

    register_commands(app)
    return app


def main() -> None:
    """Run the ``rfarm`` console script."""
    create_app().meta()


if __name__ == "__main__":
    main()
