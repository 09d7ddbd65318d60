# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, A002
"""Config commands for viewing configuration and the persisted pool size."""

from enum import StrEnum
from typing import Annotated, Any

import orjson
import tomli_w
from cyclopts import App, Parameter

from rfarm.config import TomlSettingsStore, read_worker_count, write_worker_count
from rfarm.exceptions import ConfigError

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

app = App(name="config", help="View and modify RFarm configuration", help_on_error=True)

ConfigData = dict[str, Any]  # pyright: ignore[reportExplicitAny]


class OutputFormat(StrEnum):
    """Output format for config show."""

    TOML = "toml"
    JSON = "json"


def format_toml(data: ConfigData) -> str:
    return tomli_w.dumps(data)


def format_json(data: ConfigData, *, indent: bool = True) -> str:
    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


@app.command(name="show")
def _show(
    *,
    format: Annotated[
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format (toml, json)"),
    ] = OutputFormat.TOML,
    section: Annotated[
        str | None,
        Parameter(name=["--section"], help="Show specific section only (logging, pool)"),
    ] = None,
) -> None:
    """Display the effective configuration

    Args:
        format: Output format (toml, json).
        section: Specific section to show.
    """
    ctx = CLIContext.get_current()
    if ctx.config_error:
        exit_with_error(ctx.config_error, ExitCode.CONFIG_ERROR)

    data: ConfigData = ctx.config.to_dict()
    if section:
        if section not in data:
            exit_with_error(f"Section '{section}' not found", ExitCode.CONFIG_ERROR)
        data = {section: data[section]}

    match format:
        case OutputFormat.JSON:
            output = format_json(data)
        case _:
            output = format_toml(data)

    print(output.rstrip())


@app.command(name="count")
def _count() -> None:
    """Print the persisted desired worker count"""
    ctx = CLIContext.get_current()
    store = TomlSettingsStore(ctx.settings_path, logger=ctx.logger)
    try:
        count = read_worker_count(store)
    except (ConfigError, OSError) as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)
    print(count)


@app.command(name="set-count")
def _set_count(
    count: Annotated[int, Parameter(allow_leading_hyphen=True)], /
) -> None:
    """Set the desired worker count restored on the next run

    Args:
        count: Number of workers. Must not be negative.
    """
    if count < 0:
        exit_with_error(
            f"Worker count must not be negative, got {count}", ExitCode.CONFIG_ERROR
        )

    ctx = CLIContext.get_current()
    store = TomlSettingsStore(ctx.settings_path, logger=ctx.logger)
    try:
        write_worker_count(store, count)
    except (ConfigError, OSError) as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)
    print(f"Desired worker count set to {count} in {ctx.settings_path}")
