# pyright: reportUnusedCallResult=false
"""RFarm run command - supervises the local worker pool until interrupted."""

from typing import Annotated

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from rfarm.cli._commands._context import CLIContext
from rfarm.cli._commands._shared import ExitCode, exit_with_error
from rfarm.config import TomlSettingsStore, write_worker_count
from rfarm.exceptions import ConfigError, PoolError, WorkerError
from rfarm.pool import ConsolePoolObserver, WorkerPoolManager

from ._runner import run_pool

app = App(
    name="run",
    help="Start the worker pool and keep it running until interrupted",
    help_on_error=True,
)


@app.default
def run(
    *,
    count: Annotated[
        int | None,
        Parameter(
            name=["--count", "-n"],
            help="Persist this desired worker count before starting",
            allow_leading_hyphen=True,
        ),
    ] = None,
) -> None:
    """Start the worker pool.

    Restores the persisted number of workers, prints pool events and shuts
    every worker down on SIGINT or SIGTERM.

    Args:
        count: Desired worker count to persist before loading.
    """
    ctx = CLIContext.get_current()
    console = Console()

    if ctx.config_error:
        exit_with_error(ctx.config_error, ExitCode.CONFIG_ERROR)
    if count is not None and count < 0:
        exit_with_error(
            f"Worker count must not be negative, got {count}", ExitCode.CONFIG_ERROR
        )

    settings = TomlSettingsStore(ctx.settings_path, logger=ctx.logger)
    try:
        if count is not None:
            write_worker_count(settings, count)
        manager = WorkerPoolManager(ctx.config.pool, settings, logger=ctx.logger)
    except ConfigError as e:
        exit_with_error(str(e), ExitCode.CONFIG_ERROR)
    except OSError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)

    observer = ConsolePoolObserver(console)
    observer.attach(manager)

    if ctx.verbose:
        console.print(
            f"[dim]controller={manager.controller_address} "
            f"ports={manager.config.port_range} settings={ctx.settings_path}[/dim]"
        )

    try:
        loaded = anyio.run(run_pool, manager, ctx.logger)
    except (WorkerError, PoolError) as e:
        exit_with_error(str(e), ExitCode.WORKER_ERROR)
    finally:
        observer.detach()

    console.print(f"[green]Stopped {loaded} worker(s)[/green]")
