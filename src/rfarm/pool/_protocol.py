"""Protocol definitions for the worker pool.

This module defines the interfaces that decouple the pool manager from
concrete process handling:
- Worker: one supervised external process
- ProcessLauncher: OS-level process creation and termination
- WorkerFactory: builds a Worker from a WorkerSpec
"""

import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, TypeAlias, runtime_checkable

from ._events import EventHook
from ._models import WorkerSpec, WorkerState


@runtime_checkable
class Worker(Protocol):
    """Protocol for a supervised worker process.

    The pool manager only depends on this contract. Watchdog, heartbeat and
    restart policy are the implementation's own concern.

    Notifications may be emitted from the worker's own threads:
    - restarted(worker): the worker relaunched itself under the same port
    - progress_changed(worker, text): the worker reported progress
    """

    @property
    def port(self) -> int:
        """Return the port this worker is bound to."""
        ...

    @property
    def bind_address(self) -> str | None:
        """Return the local interface address, if one was found."""
        ...

    @property
    def pid(self) -> int | None:
        """Return the process ID once running, None otherwise."""
        ...

    @property
    def state(self) -> WorkerState:
        """Return the current lifecycle state."""
        ...

    @property
    def last_progress(self) -> str | None:
        """Return the most recent progress text, if any."""
        ...

    @property
    def restarted(self) -> "EventHook[[Worker]]":
        """Return the hook fired after the worker relaunched itself."""
        ...

    @property
    def progress_changed(self) -> "EventHook[[Worker, str]]":
        """Return the hook fired when the worker reports progress."""
        ...

    def start(self) -> None:
        """Initiate the worker process launch.

        Returns once the launch is initiated, not once the process is
        confirmed alive.

        Raises:
            WorkerStartError: If the worker cannot be started.
        """
        ...

    def kill(self) -> None:
        """Terminate the worker process. Idempotent."""
        ...

    def dispose(self) -> None:
        """Release all resources. Safe after kill(); the worker is not reusable."""
        ...


@runtime_checkable
class ProcessLauncher(Protocol):
    """Protocol for OS-level process creation and termination."""

    def spawn(self, command: Sequence[str], cwd: Path) -> subprocess.Popen[str]:
        """Start a process with text-mode stdout.

        Raises:
            OSError: If the process cannot be created.
        """
        ...

    def kill_pid(self, pid: int) -> bool:
        """Forcibly terminate a process by id.

        Returns:
            True if a process was killed, False if none existed.

        Raises:
            WorkerStopError: If the process exists but cannot be killed.
        """
        ...

    def descendants(self, pid: int) -> list[int]:
        """Return the ids of every process started below ``pid``.

        Returns an empty list when ``pid`` is gone or cannot be inspected.
        """
        ...


WorkerFactory: TypeAlias = Callable[[WorkerSpec], Worker]
