"""RFarm configuration.

This module provides the public API for configuration management:
loading, validation, typed access and settings persistence.

Example:
    >>> from rfarm.config import Config
    >>> config = Config.load()
    >>> config.pool.port_range
    PortRange(start=9000, stop=9100)
"""

from rfarm.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import get_user_config_path, get_user_log_path
from ._load import safe_load_config
from ._loader import deep_merge, parse_env_vars, read_toml_file, set_nested_key
from ._models import (
    Config,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PoolConfig,
    PortRange,
)
from ._settings import (
    WORKER_COUNT_KEY,
    MemorySettingsStore,
    SettingsStore,
    SettingValue,
    TomlSettingsStore,
    read_worker_count,
    write_worker_count,
)

__all__ = [
    "DEFAULT_CONFIG",
    "WORKER_COUNT_KEY",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "MemorySettingsStore",
    "PoolConfig",
    "PortRange",
    "SettingValue",
    "SettingsStore",
    "TomlSettingsStore",
    "deep_merge",
    "get_user_config_path",
    "get_user_log_path",
    "parse_env_vars",
    "read_toml_file",
    "read_worker_count",
    "safe_load_config",
    "set_nested_key",
    "write_worker_count",
]
