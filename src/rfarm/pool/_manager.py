"""Worker pool manager.

This module provides the WorkerPoolManager class, which owns the mapping
from port to worker, allocates collision-free ports, persists the desired
pool size and relays worker notifications as pool events.

Locking discipline: one lock guards the port map and the persisted count.
Bookkeeping is committed under the lock; starting, killing and disposing
workers happens after it is released, so ``count`` may briefly run ahead
of the real OS state.
"""

import threading
from collections.abc import Callable
from types import TracebackType
from typing import Self, final

from structlog.typing import FilteringBoundLogger

from rfarm.config import PoolConfig, SettingsStore, read_worker_count, write_worker_count
from rfarm.exceptions import PoolShutdownError, WorkerStartError

from ._events import EventHook
from ._launcher import SubprocessLauncher
from ._models import WorkerSpec
from ._network import get_local_ip, resolve_controller_address
from ._ports import PortAllocator
from ._protocol import ProcessLauncher, Worker, WorkerFactory
from ._worker import ProcessWorker


@final
class WorkerPoolManager:
    """Creates, tracks and destroys the workers of the local pool.

    Only the manager creates and destroys workers. Callers get point-in-time
    snapshots of the pool, never the live mapping.

    Events (each callback receives the worker):
        added: A worker was added and started.
        deleted: A worker was removed, killed and disposed. Not emitted for
            a worker whose start failed, since it was never added.
        updated: A worker restarted itself or reported progress. Emitted on
            the worker's own thread.

    Example:
        >>> manager = WorkerPoolManager(config.pool, TomlSettingsStore(path))
        >>> manager.added.subscribe(lambda w: print("added", w.port))
        >>> manager.load()
        >>> manager.close()
    """

    __slots__ = (
        "_allocator",
        "_config",
        "_controller_address",
        "_launcher",
        "_local_ip",
        "_lock",
        "_logger",
        "_settings",
        "_worker_factory",
        "_workers",
        "added",
        "deleted",
        "updated",
    )

    def __init__(
        self,
        config: PoolConfig,
        settings: SettingsStore,
        *,
        worker_factory: WorkerFactory | None = None,
        launcher: ProcessLauncher | None = None,
        allocator: PortAllocator | None = None,
        local_ip: Callable[[], str | None] | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the manager.

        The controller host is resolved here, once, for every worker the
        manager will create.

        Args:
            config: Static pool configuration.
            settings: Persistence for the desired worker count.
            worker_factory: Builds a worker from a spec. Builds a
                ProcessWorker if None.
            launcher: Process launcher used by kill_worker() and the
                default worker factory.
            allocator: Port allocator. Built from the configured range if None.
            local_ip: Returns the local bind address. Uses get_local_ip if None.
            logger: Structured logger.

        Raises:
            AddressResolutionError: If the controller host cannot be resolved.
        """
        self._config = config
        self._settings = settings
        self._logger = logger
        self._launcher: ProcessLauncher = launcher or SubprocessLauncher()
        self._controller_address = resolve_controller_address(config.controller_host)
        self._allocator = allocator or PortAllocator(config.port_range, logger=logger)
        self._worker_factory: WorkerFactory = worker_factory or self._create_process_worker
        self._local_ip = local_ip or get_local_ip

        self._workers: dict[int, Worker] = {}
        self._lock = threading.Lock()

        self.added: EventHook[[Worker]] = EventHook("added", logger=logger)
        self.deleted: EventHook[[Worker]] = EventHook("deleted", logger=logger)
        self.updated: EventHook[[Worker]] = EventHook("updated", logger=logger)

        if self._logger:
            self._logger.info(
                "pool_manager_created",
                controller=self._controller_address,
                port_range=str(self._allocator.port_range),
            )

    def _create_process_worker(self, spec: WorkerSpec) -> Worker:
        return ProcessWorker(spec, self._launcher, logger=self._logger)

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def controller_address(self) -> str:
        """Return the resolved controller IP shared by all workers."""
        return self._controller_address

    @property
    def count(self) -> int:
        """Return the current pool size."""
        with self._lock:
            return len(self._workers)

    @property
    def workers(self) -> list[Worker]:
        """Return a snapshot of all workers in the pool."""
        with self._lock:
            return list(self._workers.values())

    @property
    def ports(self) -> list[int]:
        """Return a sorted snapshot of the ports in use."""
        with self._lock:
            return sorted(self._workers)

    def get_worker(self, port: int) -> Worker | None:
        """Return the worker bound to port, or None."""
        with self._lock:
            return self._workers.get(port)

    # -------------------------------------------------------------------------
    # Worker notifications
    # -------------------------------------------------------------------------

    def _on_worker_restarted(self, worker: Worker) -> None:
        self.updated.emit(worker)

    def _on_worker_progress_changed(self, worker: Worker, _text: str) -> None:
        self.updated.emit(worker)

    def _subscribe(self, worker: Worker) -> None:
        worker.restarted.subscribe(self._on_worker_restarted)
        worker.progress_changed.subscribe(self._on_worker_progress_changed)

    def _unsubscribe(self, worker: Worker) -> None:
        worker.restarted.unsubscribe(self._on_worker_restarted)
        worker.progress_changed.unsubscribe(self._on_worker_progress_changed)

    # -------------------------------------------------------------------------
    # Pool operations
    # -------------------------------------------------------------------------

    def add_worker(self) -> Worker:
        """Create, register and start a new worker.

        Returns:
            The new worker.

        Raises:
            WorkerStartError: If the worker fails to start. The worker is
                removed from the pool again, without a deleted event, before
                the error propagates. Any other start error is rolled back
                the same way.
        """
        bind_address = self._local_ip()

        with self._lock:
            port = self._allocator.allocate(self._workers)
            worker = self._worker_factory(
                WorkerSpec(
                    port=port,
                    bind_address=bind_address,
                    controller_address=self._controller_address,
                    executable=self._config.exe_file,
                    working_dir=self._config.work_dir,
                    unresponsive_timeout=self._config.unresponsive_timeout,
                )
            )
            write_worker_count(self._settings, len(self._workers) + 1)
            self._workers[port] = worker
            count = len(self._workers)

        self._subscribe(worker)
        try:
            worker.start()
        except Exception:
            if self._logger:
                self._logger.exception("worker_start_failed", port=port)
            _ = self._discard(worker)
            raise

        if self._logger:
            self._logger.info("worker_added", port=port, pid=worker.pid, count=count)
        self.added.emit(worker)
        return worker

    def delete_worker(self, worker: Worker | int) -> bool:
        """Remove a worker from the pool, then kill and dispose it.

        Args:
            worker: The worker instance, or the port it is bound to.

        Returns:
            True if the worker was removed, False if it was not in the pool.
        """
        if isinstance(worker, int):
            return self.delete_worker_by_port(worker)

        count = self._discard(worker)
        if count is None:
            return False

        if self._logger:
            self._logger.info("worker_deleted", port=worker.port, count=count)
        self.deleted.emit(worker)
        return True

    def _discard(self, worker: Worker) -> int | None:
        """Remove, kill and dispose a pooled worker without emitting events.

        Returns the new pool size, or None if the worker was not pooled.
        """
        with self._lock:
            if self._workers.get(worker.port) is not worker:
                return None
            write_worker_count(self._settings, len(self._workers) - 1)
            del self._workers[worker.port]
            count = len(self._workers)

        self._unsubscribe(worker)
        try:
            worker.kill()
        finally:
            worker.dispose()
        return count

    def delete_worker_by_port(self, port: int) -> bool:
        """Remove the worker bound to port.

        Returns:
            True if a worker was removed, False if the port is not in use.
        """
        with self._lock:
            worker = self._workers.get(port)
        if worker is None:
            return False
        return self.delete_worker(worker)

    def kill_worker(self, port: int) -> bool:
        """Forcibly kill the OS process of the worker bound to port.

        Bypasses the worker's own kill(), for processes that do not respond
        to their normal shutdown path. A worker without a process id is
        left alone. The worker stays in the pool; its watchdog will notice
        the dead process.

        Returns:
            True if the port belongs to a worker, False otherwise.

        Raises:
            WorkerStopError: If the OS refuses to kill the process.
        """
        with self._lock:
            worker = self._workers.get(port)
        if worker is None:
            return False

        pid = worker.pid
        if pid is None:
            if self._logger:
                self._logger.debug("worker_kill_skipped", port=port, reason="no_pid")
            return True

        killed = self._launcher.kill_pid(pid)
        if self._logger:
            self._logger.info("worker_killed", port=port, pid=pid, found=killed)
        return True

    def load(self) -> int:
        """Rebuild the pool from the persisted desired count.

        Workers are added one at a time; each addition persists the running
        count, so after a successful load the stored count equals the pool
        size.

        Returns:
            The number of workers added.
        """
        desired = read_worker_count(self._settings)
        for _ in range(desired):
            _ = self.add_worker()

        if self._logger:
            self._logger.info("pool_loaded", desired=desired, count=self.count)
        return desired

    def close(self) -> None:
        """Kill and dispose every worker and empty the pool.

        The persisted desired count is left as it was so the next load()
        restores the same pool size. A failure on one worker does not stop
        the sweep.

        Raises:
            PoolShutdownError: If any worker failed to shut down, after all
                workers have been processed.
        """
        with self._lock:
            workers = list(self._workers.values())
            self._workers.clear()

        failures: dict[int, Exception] = {}
        for worker in workers:
            self._unsubscribe(worker)
            try:
                worker.kill()
                worker.dispose()
            except Exception as e:  # noqa: BLE001
                failures[worker.port] = e
                if self._logger:
                    self._logger.exception("worker_shutdown_failed", port=worker.port)

        if self._logger:
            self._logger.info("pool_closed", workers=len(workers), failures=len(failures))

        if failures:
            ports = ", ".join(str(port) for port in sorted(failures))
            msg = f"Failed to shut down workers on ports: {ports}"
            raise PoolShutdownError(msg, failures=failures)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
