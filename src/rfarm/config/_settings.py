"""Key/value settings persistence for the worker pool.

The pool manager only needs to read and write a handful of scalar keys
(most importantly the desired worker count). This module defines the
persistence port it depends on and two implementations:
- TomlSettingsStore: persists one section of the TOML config file
- MemorySettingsStore: in-memory store for tests and embedding
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol, TypeAlias, runtime_checkable

import tomli_w
from structlog.typing import FilteringBoundLogger

from ._loader import read_toml_file

SettingValue: TypeAlias = str | int | float | bool

WORKER_COUNT_KEY = "worker_count"


@runtime_checkable
class SettingsStore(Protocol):
    """Protocol for settings persistence."""

    def get(self, key: str) -> SettingValue | None:
        """Return the stored value for a key, or None if absent."""
        ...

    def set(self, key: str, value: SettingValue) -> None:
        """Persist a value for a key, replacing any previous value."""
        ...


class MemorySettingsStore:
    """In-memory settings store.

    Data is not persisted. Every write is recorded in ``writes`` so tests
    can assert on persistence order.
    """

    def __init__(self, values: dict[str, SettingValue] | None = None) -> None:
        self._values: dict[str, SettingValue] = dict(values or {})
        self._lock = threading.Lock()
        self.writes: list[tuple[str, SettingValue]] = []

    def get(self, key: str) -> SettingValue | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: SettingValue) -> None:
        with self._lock:
            self._values[key] = value
            self.writes.append((key, value))


class TomlSettingsStore:
    """Settings store backed by one table of a TOML file.

    Reads go to disk each time so external edits are honoured. Writes
    rewrite the whole document atomically (temp file, then replace) and
    leave other tables untouched. The file and its parent directory are
    created on first write if missing.

    Attributes:
        path: The TOML file.
        section: The table holding the settings.
    """

    __slots__ = ("_lock", "_logger", "path", "section")

    def __init__(
        self,
        path: Path,
        section: str = "pool",
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.path = path
        self.section = section
        self._lock = threading.Lock()
        self._logger = logger

    def _read_document(self) -> dict[str, object]:
        try:
            return read_toml_file(self.path)
        except FileNotFoundError:
            return {}

    def get(self, key: str) -> SettingValue | None:
        with self._lock:
            table = self._read_document().get(self.section)
        if not isinstance(table, dict):
            return None
        return table.get(key)  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]

    def set(self, key: str, value: SettingValue) -> None:
        with self._lock:
            document = self._read_document()
            table = document.get(self.section)
            if not isinstance(table, dict):
                table = {}
                document[self.section] = table
            table[key] = value
            self._write_document(document)

        if self._logger:
            self._logger.debug("setting_saved", key=key, value=value, path=str(self.path))

    def _write_document(self, document: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = tomli_w.dumps(document)

        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=self.path.parent,
            delete=False,
            suffix=".tmp",
            encoding="utf-8",
        ) as f:
            f.write(content)
            temp_path = Path(f.name)

        try:
            os.replace(temp_path, self.path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise


def read_worker_count(store: SettingsStore) -> int:
    """Read the persisted desired worker count.

    A missing, non-integer or negative value is reset to 0 and written
    back so the stored settings are valid again.

    Args:
        store: The settings store.

    Returns:
        The desired worker count.
    """
    value = store.get(WORKER_COUNT_KEY)
    count: int | None = None
    if isinstance(value, int) and not isinstance(value, bool):
        count = value
    elif isinstance(value, str):
        try:
            count = int(value.strip())
        except ValueError:
            count = None

    if count is None or count < 0:
        store.set(WORKER_COUNT_KEY, 0)
        return 0
    return count


def write_worker_count(store: SettingsStore, count: int) -> None:
    """Persist the desired worker count."""
    store.set(WORKER_COUNT_KEY, count)
