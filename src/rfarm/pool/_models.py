"""Data models for the worker pool.

This module defines the core data types for worker supervision:
- WorkerState: Lifecycle states of a supervised worker
- WorkerSpec: Immutable inputs a worker is built from
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class WorkerState(StrEnum):
    """Worker lifecycle states.

    Transitions:
        created -> starting -> running <-> unresponsive -> restarting
        restarting -> running | killed
        any -> killed -> disposed

    States:
    - CREATED: Worker exists but start() has not been called
    - STARTING: Launch has been initiated
    - RUNNING: Process is confirmed running
    - UNRESPONSIVE: No heartbeat within the unresponsive timeout
    - RESTARTING: Process is being relaunched under the same port
    - KILLED: Process has been terminated
    - DISPOSED: Resources released; the worker cannot be reused
    """

    CREATED = "created"
    STARTING = "starting"
    RUNNING = "running"
    UNRESPONSIVE = "unresponsive"
    RESTARTING = "restarting"
    KILLED = "killed"
    DISPOSED = "disposed"

    @property
    def has_process(self) -> bool:
        """Return True if a process id is meaningful in this state."""
        return self in _PROCESS_STATES


_PROCESS_STATES = frozenset(
    {WorkerState.RUNNING, WorkerState.UNRESPONSIVE, WorkerState.RESTARTING}
)


@dataclass(frozen=True, slots=True)
class WorkerSpec:
    """Immutable configuration for a single worker.

    Attributes:
        port: Unique local port the worker binds to.
        bind_address: Local interface address, or None if the machine has
            no usable IPv4 interface.
        controller_address: Resolved IP of the upstream controller.
        executable: Path to the worker executable.
        working_dir: Working directory for the worker process.
        unresponsive_timeout: Seconds without a heartbeat before the worker
            is considered failed.
    """

    port: int
    bind_address: str | None
    controller_address: str
    executable: Path
    working_dir: Path
    unresponsive_timeout: float
