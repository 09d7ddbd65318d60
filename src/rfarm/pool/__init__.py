"""Worker pool package for supervising render worker processes.

This package owns the local pool of worker processes: how many run, which
port each one binds, and what happens when one stops responding.

Key Components:
    - WorkerPoolManager: Owns the port-to-worker map and pool events
    - Worker: Protocol every worker implementation satisfies
    - ProcessWorker: Default worker backed by an OS process and a watchdog
    - ProcessLauncher / SubprocessLauncher: OS process creation and killing
    - PortAllocator: Random, collision-free port selection
    - EventHook: Callback registration used for all notifications
    - resolve_controller_address / get_local_ip: Address resolution
    - ConsolePoolObserver: Prints pool events to a rich console
    - FakeWorker / FakeLauncher: Test doubles

Example:
    >>> from rfarm.config import Config, TomlSettingsStore
    >>> from rfarm.pool import WorkerPoolManager
    >>> config = Config.load()
    >>> with WorkerPoolManager(config.pool, TomlSettingsStore(config.path)) as pool:
    ...     pool.load()
"""

from ._backoff import RestartBackoff
from ._events import EventHook
from ._fake import FakeLauncher, FakeWorker
from ._launcher import SubprocessLauncher
from ._manager import WorkerPoolManager
from ._models import WorkerSpec, WorkerState
from ._network import get_local_ip, resolve_controller_address
from ._output import ConsolePoolObserver, PoolEventType
from ._ports import PortAllocator
from ._protocol import ProcessLauncher, Worker, WorkerFactory
from ._worker import ProcessWorker

__all__ = [
    "ConsolePoolObserver",
    "EventHook",
    "FakeLauncher",
    "FakeWorker",
    "PoolEventType",
    "PortAllocator",
    "ProcessLauncher",
    "ProcessWorker",
    "RestartBackoff",
    "SubprocessLauncher",
    "Worker",
    "WorkerFactory",
    "WorkerPoolManager",
    "WorkerSpec",
    "WorkerState",
    "get_local_ip",
    "resolve_controller_address",
]
