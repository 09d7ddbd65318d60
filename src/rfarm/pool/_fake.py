"""Fake worker and launcher for testing.

This module provides in-memory implementations of the Worker and
ProcessLauncher protocols for use in tests without spawning processes.
"""

import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from rfarm.exceptions import WorkerStartError, WorkerStopError

from ._events import EventHook
from ._models import WorkerSpec, WorkerState
from ._protocol import Worker


class FakeWorker:
    """Fake worker for testing.

    Implements the Worker protocol and records every lifecycle call. Tests
    drive the simulated process with helper methods:
    - confirm(): the process is confirmed running with a pid
    - simulate_restart(): the watchdog relaunched the process
    - report_progress(): the process reported progress
    - simulate_exit(): the process died, leaving no pid

    Example:
        >>> worker = FakeWorker(spec, auto_pid=4242)
        >>> worker.start()
        >>> worker.pid
        4242
    """

    def __init__(
        self,
        spec: WorkerSpec,
        *,
        auto_pid: int | None = None,
        start_error: Exception | None = None,
        kill_error: Exception | None = None,
    ) -> None:
        """Initialize the fake.

        Args:
            spec: The worker spec it was built from.
            auto_pid: Pid to confirm immediately on start, if any.
            start_error: Exception raised by start(), if any.
            kill_error: Exception raised by kill(), if any.
        """
        self.spec = spec
        self.calls: list[str] = []
        self.kill_count = 0
        self._auto_pid = auto_pid
        self._start_error = start_error
        self._kill_error = kill_error
        self._pid: int | None = None
        self._state = WorkerState.CREATED
        self._last_progress: str | None = None
        self._restarted: EventHook[[Worker]] = EventHook("restarted")
        self._progress_changed: EventHook[[Worker, str]] = EventHook("progress_changed")

    @property
    def port(self) -> int:
        return self.spec.port

    @property
    def bind_address(self) -> str | None:
        return self.spec.bind_address

    @property
    def pid(self) -> int | None:
        return self._pid if self._state.has_process else None

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def last_progress(self) -> str | None:
        return self._last_progress

    @property
    def restarted(self) -> EventHook[[Worker]]:
        return self._restarted

    @property
    def progress_changed(self) -> EventHook[[Worker, str]]:
        return self._progress_changed

    def start(self) -> None:
        self.calls.append("start")
        if self._state == WorkerState.DISPOSED:
            msg = f"Worker on port {self.port} has been disposed"
            raise WorkerStartError(msg, port=self.port)
        if self._start_error is not None:
            raise self._start_error
        self._state = WorkerState.STARTING
        if self._auto_pid is not None:
            self.confirm(self._auto_pid)

    def confirm(self, pid: int) -> None:
        self._pid = pid
        self._state = WorkerState.RUNNING

    def simulate_restart(self, pid: int | None = None) -> None:
        self._state = WorkerState.RESTARTING
        if pid is not None:
            self._pid = pid
        self._state = WorkerState.RUNNING
        self._restarted.emit(self)

    def report_progress(self, text: str) -> None:
        self._last_progress = text
        self._progress_changed.emit(self, text)

    def simulate_exit(self) -> None:
        self._pid = None
        self._state = WorkerState.KILLED

    def kill(self) -> None:
        self.calls.append("kill")
        self.kill_count += 1
        if self._kill_error is not None:
            raise self._kill_error
        self._pid = None
        if self._state != WorkerState.DISPOSED:
            self._state = WorkerState.KILLED

    def dispose(self) -> None:
        self.calls.append("dispose")
        self._state = WorkerState.DISPOSED
        self._restarted.clear()
        self._progress_changed.clear()


@dataclass(slots=True)
class FakeLauncher:
    """Fake process launcher for testing.

    ``alive`` holds the pids kill_pid() treats as existing processes;
    ``children`` maps a pid to what descendants() reports for it;
    every kill_pid() call is recorded in ``killed``. spawn() delegates to
    ``spawn_handler`` and fails like a missing executable when it is None.
    """

    alive: set[int] = field(default_factory=set)
    denied: set[int] = field(default_factory=set)
    children: dict[int, list[int]] = field(default_factory=dict)
    killed: list[int] = field(default_factory=list)
    spawned: list[list[str]] = field(default_factory=list)
    spawn_handler: Callable[[Sequence[str], Path], subprocess.Popen[str]] | None = None

    def spawn(self, command: Sequence[str], cwd: Path) -> subprocess.Popen[str]:
        self.spawned.append(list(command))
        if self.spawn_handler is None:
            msg = f"No such file or directory: {command[0]!r}"
            raise FileNotFoundError(msg)
        return self.spawn_handler(command, cwd)

    def kill_pid(self, pid: int) -> bool:
        self.killed.append(pid)
        if pid in self.denied:
            msg = f"Access denied killing process {pid}"
            raise WorkerStopError(msg)
        if pid not in self.alive:
            return False
        self.alive.discard(pid)
        return True

    def descendants(self, pid: int) -> list[int]:
        return list(self.children.get(pid, ()))
