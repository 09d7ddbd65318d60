# pyright: reportExplicitAny=false, reportAny=false
"""Configuration models.

This module defines the typed configuration sections:
- LogLevel / LogFormat: logging enums
- LoggingConfig: logging settings
- PortRange: the inclusive-exclusive window workers may bind to
- PoolConfig: static worker pool settings
- Config: top-level container with factory methods
"""

import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
)

from rfarm.exceptions import ConfigValidationError

from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, read_toml_file

_PORT_RANGE_PATTERN = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")
_MIN_PORT = 1
_MAX_PORT = 65535


class LogLevel(StrEnum):
    """Minimum severity written to the pool log."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """How log lines are rendered."""

    JSON = "json"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class PortRange:
    """Inclusive-exclusive range of ports, ``[start, stop)``.

    Attributes:
        start: First port in the range.
        stop: One past the last port in the range.
    """

    start: int
    stop: int

    @classmethod
    def parse(cls, value: str, *, key: str = "pool.worker_port_range") -> Self:
        """Parse a ``"<from>-<to>"`` string into a port range.

        Args:
            value: The configured range, e.g. ``"9000-9100"``.
            key: Configuration key reported in validation errors.

        Returns:
            The parsed range.

        Raises:
            ConfigValidationError: If the text is malformed, a bound lies
                outside 1-65535, or the range is empty.
        """
        expected = '"<from>-<to>" with 1 <= from < to <= 65535'
        match = _PORT_RANGE_PATTERN.match(value)
        if match is None:
            msg = f"Invalid port range: {value!r}"
            raise ConfigValidationError(msg, key=key, value=value, expected=expected)

        start, stop = int(match.group(1)), int(match.group(2))
        if start < _MIN_PORT or stop > _MAX_PORT or start >= stop:
            msg = f"Port range out of bounds: {value!r}"
            raise ConfigValidationError(msg, key=key, value=value, expected=expected)
        return cls(start=start, stop=stop)

    def __contains__(self, port: object) -> bool:
        return isinstance(port, int) and self.start <= port < self.stop

    def __len__(self) -> int:
        return self.stop - self.start

    def __str__(self) -> str:
        return f"{self.start}-{self.stop}"


class LoggingConfig(BaseModel):
    """The ``[logging]`` table. An empty ``file`` means the platform log dir."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class PoolConfig(BaseModel):
    """Worker pool configuration section.

    The desired worker count lives in the same section on disk but is owned
    by the settings store, not by this model.

    Attributes:
        work_dir: Working directory for each worker process.
        exe_file: Path to the worker executable.
        controller_host: Literal IP or DNS name of the upstream controller.
        worker_port_range: Ports legal for worker binding.
        unresponsive_timeout: Seconds of silence before a worker is
            considered failed.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    work_dir: Path = Path()
    exe_file: Path = Path("worker")
    controller_host: str = Field(default="127.0.0.1", min_length=1)
    worker_port_range: str = "9000-9100"
    unresponsive_timeout: float = Field(default=60.0, gt=0)

    @field_validator("worker_port_range")
    @classmethod
    def _check_port_range(cls, value: str) -> str:
        try:
            _ = PortRange.parse(value)
        except ConfigValidationError as e:
            raise ValueError(str(e)) from e
        return value.strip()

    @property
    def port_range(self) -> PortRange:
        """Return the parsed worker port range."""
        return PortRange.parse(self.worker_port_range)


def _to_config_error(error: ValidationError, source: str | None) -> ConfigValidationError:
    """Convert the first pydantic error into a ConfigValidationError."""
    first = error.errors()[0]
    key = ".".join(str(part) for part in first["loc"])
    msg = f"Invalid configuration value for '{key}': {first['msg']}"
    return ConfigValidationError(
        msg,
        key=key,
        value=first.get("input"),
        expected=first["type"],
        source=source,
    )


class Config(BaseModel):
    """The whole rfarm config: ``[pool]`` and ``[logging]``.

    Use the factory methods rather than the constructor.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)

    _path: Path | None = PrivateAttr(default=None)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        source: str | None = None,
    ) -> Self:
        """Create configuration from a dictionary.

        Args:
            data: Dictionary of configuration values.
            source: Description of where the values came from.

        Returns:
            Configuration object merged over the defaults.

        Raises:
            ConfigValidationError: If validation fails.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            raise _to_config_error(e, source) from e

    @classmethod
    def from_file(cls, path: Path, *, include_env: bool = False) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to the TOML config file.
            include_env: Whether RFARM_* environment variables override
                the file values.

        Returns:
            Configuration object bound to the file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        if include_env:
            data = deep_merge(data, parse_env_vars())
        config = cls.from_dict(data, source=str(path))
        config._path = path
        return config

    @classmethod
    def load(cls, path: Path | None = None) -> Self:
        """Load configuration with discovery and environment overrides.

        Args:
            path: Config file path. Defaults to the platform user config
                file; a missing default file yields the built-in defaults.

        Returns:
            The loaded configuration.
        """
        from ._discovery import get_user_config_path  # noqa: PLC0415

        effective = path if path is not None else get_user_config_path()
        if path is None and not effective.exists():
            config = cls.from_dict(parse_env_vars(), source="env")
            config._path = effective
            return config
        return cls.from_file(effective, include_env=True)

    @property
    def path(self) -> Path | None:
        """Return the file this configuration was loaded from, if any."""
        return self._path

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a TOML-serializable dictionary."""
        return self.model_dump(mode="json")
