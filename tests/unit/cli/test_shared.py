"""Unit tests for the shared CLI utilities module."""

from io import StringIO

import pytest
from rich.console import Console

from rfarm.cli._commands._shared import ExitCode, exit_with_error, get_error_console


class TestExitCode:
    def test_exit_code_values_are_unique(self) -> None:
        values = [code.value for code in ExitCode]
        assert len(values) == len(set(values))

    def test_config_errors_exit_with_two(self) -> None:
        assert ExitCode.SUCCESS == 0
        assert ExitCode.CONFIG_ERROR == 2


class TestExitWithError:
    def test_prints_and_exits(self, console: Console, console_output: StringIO) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("controller unreachable", ExitCode.CONFIG_ERROR, console=console)

        assert exc_info.value.code == ExitCode.CONFIG_ERROR
        assert "Error: controller unreachable" in console_output.getvalue()

    def test_defaults_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("boom")

        assert exc_info.value.code == ExitCode.LOAD_ERROR
        assert "Error: boom" in capsys.readouterr().err


def test_get_error_console_writes_to_stderr() -> None:
    assert get_error_console().stderr is True
