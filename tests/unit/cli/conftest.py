from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from rich.console import Console

from rfarm.cli import create_app
from rfarm.cli._commands import CLIContext


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Keep config and log files of CLI runs inside tmp_path."""
    user_dir = tmp_path / "user"
    config_path = user_dir / "config.toml"
    monkeypatch.setattr("rfarm.config._discovery.get_user_config_path", lambda: config_path)
    monkeypatch.setattr("rfarm.cli._commands._context.get_user_config_path", lambda: config_path)
    monkeypatch.setattr("rfarm.config.get_user_log_path", lambda: user_dir / "rfarm.log")
    monkeypatch.delenv("RFARM_STRICT_CONFIG", raising=False)
    yield config_path
    CLIContext.clear()


@pytest.fixture
def rfarm_cli(console: Console) -> Callable[..., int]:
    """Run the CLI with global options and return the exit code."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        return 0

    return _run


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A config file with a literal controller and a local log file."""
    path = tmp_path / "rfarm.toml"
    path.write_text(
        "[logging]\n"
        f'file = "{(tmp_path / "logs" / "rfarm.log").as_posix()}"\n'
        "\n"
        "[pool]\n"
        'controller_host = "192.168.1.10"\n'
        'worker_port_range = "9000-9010"\n'
    )
    return path
