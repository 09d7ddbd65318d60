"""Config loading for the CLI, where a broken file must not be fatal."""

import os
import sys
from pathlib import Path
from typing import Never

from rfarm.exceptions import ConfigError

from ._models import Config

STRICT_ENV_VAR = "RFARM_STRICT_CONFIG"


def _strict() -> bool:
    return os.environ.get(STRICT_ENV_VAR, "0") == "1"


def _fail(message: str) -> Never:
    print(f"Error: {message}", file=sys.stderr)  # noqa: T201
    sys.exit(1)


def safe_load_config(*, config_path: Path | None = None) -> tuple[Config, str | None]:
    """Load config, degrading to defaults when the file is unusable.

    A ``--config`` path that does not exist always exits with status 1.
    A file that fails to parse or validate exits with status 1 when
    RFARM_STRICT_CONFIG=1; otherwise a warning goes to stderr and the
    defaults are returned together with the reason.
    """
    if config_path is not None and not config_path.exists():
        _fail(f"Config file not found: {config_path}")

    try:
        return Config.load(config_path), None
    except (ConfigError, OSError) as e:
        reason = f"Failed to load config: {e}"
        if _strict():
            _fail(reason)
        print(f"Warning: {reason}", file=sys.stderr)  # noqa: T201
        return Config.from_dict({}), reason
