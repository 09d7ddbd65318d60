"""Console presentation of pool events.

This module provides ConsolePoolObserver, a pure consumer of the pool
manager's added/deleted/updated events that prints one line per event.
"""

from enum import StrEnum
from typing import final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._manager import WorkerPoolManager
from ._protocol import Worker


class PoolEventType(StrEnum):
    """Pool-level event kinds shown by the observer."""

    ADDED = "added"
    DELETED = "deleted"
    UPDATED = "updated"


@final
class ConsolePoolObserver:
    """Prints pool events as ``[worker:port] event details`` lines.

    Colour coding:
    - added: green
    - deleted: yellow
    - updated: cyan, with the worker's latest progress text dimmed
    """

    __slots__ = ("_console", "_event_styles", "_manager")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the observer.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._console = console or Console()
        self._manager: WorkerPoolManager | None = None
        self._event_styles: dict[PoolEventType, Style] = {
            PoolEventType.ADDED: Style(color="green", bold=True),
            PoolEventType.DELETED: Style(color="yellow"),
            PoolEventType.UPDATED: Style(color="cyan"),
        }

    def attach(self, manager: WorkerPoolManager) -> None:
        """Subscribe to a manager's pool events."""
        self.detach()
        manager.added.subscribe(self.on_added)
        manager.deleted.subscribe(self.on_deleted)
        manager.updated.subscribe(self.on_updated)
        self._manager = manager

    def detach(self) -> None:
        """Unsubscribe from the attached manager, if any."""
        if self._manager is None:
            return
        self._manager.added.unsubscribe(self.on_added)
        self._manager.deleted.unsubscribe(self.on_deleted)
        self._manager.updated.unsubscribe(self.on_updated)
        self._manager = None

    def on_added(self, worker: Worker) -> None:
        self._write(worker, PoolEventType.ADDED, f"pid={worker.pid} state={worker.state}")

    def on_deleted(self, worker: Worker) -> None:
        self._write(worker, PoolEventType.DELETED, f"state={worker.state}")

    def on_updated(self, worker: Worker) -> None:
        self._write(worker, PoolEventType.UPDATED, worker.last_progress or str(worker.state))

    def _write(self, worker: Worker, event_type: PoolEventType, detail: str) -> None:
        text = Text()
        _ = text.append(f"[worker:{worker.port}]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(event_type.value, style=self._event_styles[event_type])
        _ = text.append(" ")
        _ = text.append(detail, style=Style(dim=True))
        self._console.print(text)
