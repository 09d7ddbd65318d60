# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Reading config.toml and layering overrides on top of it.

Environment overrides use ``RFARM_<SECTION>__<KEY>``. Their values are read
as TOML literals, so ``RFARM_POOL__UNRESPONSIVE_TIMEOUT=15`` becomes an int
and ``RFARM_POOL__CONTROLLER_HOST=render-ctl`` stays a string.
"""

import copy
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from rfarm.exceptions import ConfigLoadError

ENV_PREFIX = "RFARM_"
_SECTION_SEPARATOR = "__"
_LITERAL_TYPES = (bool, int, float, list)


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse a TOML file into a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file is not valid TOML.
    """
    content = path.read_bytes()
    try:
        return tomllib.loads(content.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        msg = f"Failed to parse {path}: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
    override: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Return ``base`` with ``override`` layered on top.

    Tables merge key by key; any other value in ``override`` replaces the
    one in ``base``. The result shares no mutable state with the inputs.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))  # pyright: ignore[reportExplicitAny]
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect ``RFARM_<SECTION>__<KEY>`` variables into nested tables.

    Variables without a section separator (RFARM_DEBUG, RFARM_LOG_LEVEL,
    RFARM_STRICT_CONFIG) are process switches, not config keys, and are
    skipped.

    Args:
        prefix: Variable name prefix.
        environ: Variables to read. Defaults to ``os.environ``.
    """
    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    source = os.environ if environ is None else environ

    for name, raw in source.items():
        if not name.startswith(prefix):
            continue
        key = name.removeprefix(prefix)
        if _SECTION_SEPARATOR not in key:
            continue
        dotted = ".".join(part.lower() for part in key.split(_SECTION_SEPARATOR))
        set_nested_key(overrides, dotted, parse_env_value(raw))

    return overrides


def parse_env_value(raw: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Read an override as a TOML boolean, number or array, else a string."""
    try:
        value = tomllib.loads(f"value = {raw.strip()}")["value"]
    except tomllib.TOMLDecodeError:
        return raw
    return value if isinstance(value, _LITERAL_TYPES) else raw


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Assign ``value`` at a dotted path, replacing non-table values on the way.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "pool.controller_host", "10.0.0.5")
        >>> d
        {'pool': {'controller_host': '10.0.0.5'}}
    """
    *tables, leaf = key_path.split(".")
    current = d
    for table in tables:
        child = current.get(table)
        if not isinstance(child, dict):
            child = {}
            current[table] = child
        current = child
    current[leaf] = value
