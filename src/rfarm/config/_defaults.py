"""Built-in values for every config key.

``Config.from_dict`` merges user data over this table; ``deep_merge`` copies,
so it is never mutated.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "text",
        "file": "",
    },
    "pool": {
        "work_dir": ".",
        "exe_file": "worker",
        "controller_host": "127.0.0.1",
        "worker_port_range": "9000-9100",
        "unresponsive_timeout": 60,
    },
}
