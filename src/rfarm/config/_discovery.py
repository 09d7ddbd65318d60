"""Platform-specific configuration path discovery."""

from pathlib import Path

import platformdirs

APP_NAME = "rfarm"


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/rfarm/config.toml``
    - macOS: ``~/Library/Application Support/rfarm/config.toml``
    - Windows: ``%APPDATA%\rfarm\config.toml``

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path(APP_NAME) / "config.toml"


def get_user_log_path() -> Path:
    """Get the default log file path in the platform user log directory."""
    return platformdirs.user_log_path(APP_NAME) / "rfarm.log"
