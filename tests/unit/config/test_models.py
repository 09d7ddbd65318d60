# pyright: reportAny=false
"""Unit tests for configuration models."""

from pathlib import Path

import pytest

from rfarm.config import (
    Config,
    ConfigValidationError,
    LogFormat,
    LogLevel,
    PoolConfig,
    PortRange,
)


class TestPortRange:
    def test_parse_valid_range(self) -> None:
        assert PortRange.parse("9000-9100") == PortRange(start=9000, stop=9100)

    def test_parse_tolerates_whitespace(self) -> None:
        assert PortRange.parse(" 9000 - 9100 ") == PortRange(start=9000, stop=9100)

    @pytest.mark.parametrize(
        "value",
        ["", "9000", "9000-", "-9100", "a-b", "9000:9100", "9000-9100-9200"],
    )
    def test_parse_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = PortRange.parse(value)

        assert exc_info.value.key == "pool.worker_port_range"
        assert exc_info.value.value == value

    @pytest.mark.parametrize("value", ["0-10", "9000-65536", "9100-9000", "9000-9000"])
    def test_parse_rejects_out_of_bounds_or_empty(self, value: str) -> None:
        with pytest.raises(ConfigValidationError, match="out of bounds"):
            _ = PortRange.parse(value)

    def test_parse_reports_custom_key(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = PortRange.parse("nope", key="ports")

        assert exc_info.value.key == "ports"

    def test_stop_is_exclusive(self) -> None:
        ports = PortRange(start=9000, stop=9002)

        assert 9000 in ports
        assert 9001 in ports
        assert 9002 not in ports
        assert len(ports) == 2

    def test_non_int_is_not_contained(self) -> None:
        assert "9000" not in PortRange(start=9000, stop=9100)

    def test_str_round_trips_config_text(self) -> None:
        assert str(PortRange(start=1, stop=65535)) == "1-65535"


class TestPoolConfig:
    def test_defaults(self) -> None:
        config = PoolConfig()

        assert config.work_dir == Path()
        assert config.exe_file == Path("worker")
        assert config.controller_host == "127.0.0.1"
        assert config.port_range == PortRange(start=9000, stop=9100)
        assert config.unresponsive_timeout == 60.0

    def test_invalid_port_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid port range"):
            _ = PoolConfig(worker_port_range="lots")

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="unresponsive_timeout"):
            _ = PoolConfig(unresponsive_timeout=0)

    def test_empty_controller_host_rejected(self) -> None:
        with pytest.raises(ValueError, match="controller_host"):
            _ = PoolConfig(controller_host="")

    def test_worker_count_key_is_ignored(self) -> None:
        # worker_count shares the [pool] table but belongs to the settings store
        config = PoolConfig.model_validate({"worker_count": 4})

        assert not hasattr(config, "worker_count")


class TestConfig:
    def test_from_empty_dict_uses_defaults(self) -> None:
        config = Config.from_dict({})

        assert config.logging.level == LogLevel.INFO
        assert config.logging.format == LogFormat.TEXT
        assert config.logging.file == ""
        assert config.pool == PoolConfig()
        assert config.path is None

    def test_from_dict_merges_partial_sections(self) -> None:
        config = Config.from_dict({"pool": {"controller_host": "render-ctl"}})

        assert config.pool.controller_host == "render-ctl"
        assert config.pool.worker_port_range == "9000-9100"

    def test_from_dict_maps_validation_error(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict(
                {"pool": {"unresponsive_timeout": -1}}, source="/etc/rfarm.toml"
            )

        error = exc_info.value
        assert error.key == "pool.unresponsive_timeout"
        assert error.value == -1
        assert error.source == "/etc/rfarm.toml"

    def test_from_dict_rejects_bad_enum(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"logging": {"level": "loud"}})

        assert exc_info.value.key == "logging.level"

    def test_to_dict_is_toml_friendly(self) -> None:
        data = Config.from_dict({"pool": {"work_dir": "/srv/render"}}).to_dict()

        assert data["pool"]["work_dir"] == "/srv/render"
        assert data["pool"]["exe_file"] == "worker"
        assert data["logging"]["level"] == "info"

    def test_config_is_frozen(self) -> None:
        config = Config.from_dict({})

        with pytest.raises(ValueError, match="frozen"):
            config.pool = PoolConfig()  # pyright: ignore[reportAttributeAccessIssue]
