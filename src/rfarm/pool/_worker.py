"""Process-backed worker with a heartbeat watchdog.

This module provides ProcessWorker, the default Worker implementation. It
launches the worker executable, treats every line the process writes to
stdout as a progress report and heartbeat, and relaunches the process
under the same port when it goes silent or exits.
"""

import subprocess
import threading
import time
from typing import final

from structlog.typing import FilteringBoundLogger

from rfarm.exceptions import WorkerStartError, WorkerStopError

from ._backoff import RestartBackoff
from ._events import EventHook
from ._launcher import SubprocessLauncher
from ._models import WorkerSpec, WorkerState
from ._protocol import ProcessLauncher, Worker

_MAX_POLL_INTERVAL = 1.0
_JOIN_TIMEOUT = 5.0


@final
class ProcessWorker:
    """Supervises one worker process.

    The watchdog thread polls the process. A process that has written
    nothing for ``unresponsive_timeout`` seconds is marked unresponsive;
    if it is still silent on the next poll it is killed and relaunched.
    A process that exits on its own is relaunched straight away. Relaunch
    delays follow an exponential backoff that resets once the process
    reports progress again.

    Stopping a process also kills every process it started, so nothing is
    left holding the stdout pipe. The reader thread closes the pipe when it
    sees end of file and is joined on kill() and dispose().

    Attributes:
        spec: Immutable configuration for this worker.
    """

    __slots__ = (
        "_backoff",
        "_failures",
        "_last_heartbeat",
        "_last_progress",
        "_launcher",
        "_lock",
        "_logger",
        "_process",
        "_progress_changed",
        "_reader",
        "_restart_count",
        "_restarted",
        "_shutdown_timeout",
        "_state",
        "_stop_event",
        "_watchdog",
        "spec",
    )

    def __init__(
        self,
        spec: WorkerSpec,
        launcher: ProcessLauncher | None = None,
        *,
        backoff: RestartBackoff | None = None,
        shutdown_timeout: float = 5.0,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            spec: Configuration for the worker.
            launcher: Process launcher. Uses SubprocessLauncher if None.
            backoff: Restart delay calculator.
            shutdown_timeout: Seconds to wait for graceful exit before
                force killing.
            logger: Structured logger.
        """
        self.spec = spec
        self._launcher: ProcessLauncher = launcher or SubprocessLauncher()
        self._backoff = backoff or RestartBackoff()
        self._shutdown_timeout = shutdown_timeout
        self._logger = logger.bind(port=spec.port) if logger else None

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._state = WorkerState.CREATED
        self._process: subprocess.Popen[str] | None = None
        self._watchdog: threading.Thread | None = None
        self._reader: threading.Thread | None = None
        self._last_heartbeat = 0.0
        self._last_progress: str | None = None
        self._restart_count = 0
        self._failures = 0

        self._restarted: EventHook[[Worker]] = EventHook("restarted", logger=logger)
        self._progress_changed: EventHook[[Worker, str]] = EventHook(
            "progress_changed", logger=logger
        )

    @property
    def port(self) -> int:
        return self.spec.port

    @property
    def bind_address(self) -> str | None:
        return self.spec.bind_address

    @property
    def pid(self) -> int | None:
        with self._lock:
            if self._process is None or not self._state.has_process:
                return None
            return self._process.pid

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def last_progress(self) -> str | None:
        return self._last_progress

    @property
    def restart_count(self) -> int:
        """Return how many times the watchdog relaunched the process."""
        return self._restart_count

    @property
    def restarted(self) -> EventHook[[Worker]]:
        return self._restarted

    @property
    def progress_changed(self) -> EventHook[[Worker, str]]:
        return self._progress_changed

    @property
    def command(self) -> list[str]:
        """Return the command line used to launch the worker process."""
        return [
            str(self.spec.executable),
            "--port",
            str(self.spec.port),
            "--bind",
            self.spec.bind_address or "",
            "--controller",
            self.spec.controller_address,
        ]

    def start(self) -> None:
        """Launch the worker process and its watchdog.

        Does nothing if the worker is already running.

        Raises:
            WorkerStartError: If the worker was disposed, has no local bind
                address, or the executable cannot be launched.
        """
        with self._lock:
            if self._state == WorkerState.DISPOSED:
                msg = f"Worker on port {self.port} has been disposed"
                raise WorkerStartError(msg, port=self.port)
            if self._state.has_process or self._state == WorkerState.STARTING:
                return
            if self.spec.bind_address is None:
                self._state = WorkerState.KILLED
                msg = f"No local IPv4 address available for worker on port {self.port}"
                raise WorkerStartError(msg, port=self.port)

            self._state = WorkerState.STARTING
            self._stop_event.clear()
            self._launch()

            self._watchdog = threading.Thread(
                target=self._watch,
                name=f"rfarm-watchdog-{self.port}",
                daemon=True,
            )
            self._watchdog.start()

    def _launch(self) -> None:
        """Spawn the process. Caller holds the lock."""
        try:
            process = self._launcher.spawn(self.command, self.spec.working_dir)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            self._state = WorkerState.KILLED
            msg = f"Failed to start worker on port {self.port}: {e}"
            raise WorkerStartError(msg, port=self.port, cause=e) from e

        self._process = process
        self._last_heartbeat = time.monotonic()
        self._state = WorkerState.RUNNING

        if self._logger:
            self._logger.info("worker_process_started", pid=process.pid)

        self._reader = threading.Thread(
            target=self._read_output,
            args=(process,),
            name=f"rfarm-reader-{self.port}",
            daemon=True,
        )
        self._reader.start()

    def _read_output(self, process: subprocess.Popen[str]) -> None:
        """Stream process stdout, turning each line into a progress report."""
        stream = process.stdout
        if stream is None:
            return

        try:
            for raw_line in stream:
                line = raw_line.rstrip("\r\n")
                if not line:
                    continue
                with self._lock:
                    if process is not self._process:
                        return
                    self._last_heartbeat = time.monotonic()
                    self._last_progress = line
                    self._failures = 0
                    if self._state == WorkerState.UNRESPONSIVE:
                        self._state = WorkerState.RUNNING
                self._progress_changed.emit(self, line)
        except (OSError, ValueError):
            # Pipe closed underneath us on kill
            return
        finally:
            stream.close()

    def _join_reader(self, reader: threading.Thread | None) -> None:
        if reader is None or reader is threading.current_thread():
            return
        reader.join(timeout=_JOIN_TIMEOUT)
        if reader.is_alive() and self._logger:
            self._logger.warning("worker_output_still_open", thread=reader.name)

    def _poll_interval(self) -> float:
        return min(_MAX_POLL_INTERVAL, self.spec.unresponsive_timeout / 4)

    def _watch(self) -> None:
        """Watchdog loop: detect silent or dead processes and relaunch them."""
        timeout = self.spec.unresponsive_timeout

        while not self._stop_event.wait(self._poll_interval()):
            with self._lock:
                process = self._process
                if process is None or self._state not in (
                    WorkerState.RUNNING,
                    WorkerState.UNRESPONSIVE,
                ):
                    continue

                exit_code = process.poll()
                silent = time.monotonic() - self._last_heartbeat >= timeout
                if exit_code is None and not silent:
                    continue
                if exit_code is None and self._state == WorkerState.RUNNING:
                    self._state = WorkerState.UNRESPONSIVE
                    if self._logger:
                        self._logger.warning("worker_unresponsive", timeout=timeout)
                    continue

                self._state = WorkerState.RESTARTING
                attempt = self._failures
                self._failures += 1
                reader = self._reader

            if self._logger:
                self._logger.warning(
                    "worker_restarting", exit_code=exit_code, attempt=attempt + 1
                )
            try:
                self._terminate(process)
            except WorkerStopError:
                if self._logger:
                    self._logger.exception("worker_terminate_failed")

            with self._lock:
                if self._process is process:
                    self._process = None
            self._join_reader(reader)

            if self._stop_event.wait(self._backoff.delay(attempt)):
                return

            with self._lock:
                if self._state != WorkerState.RESTARTING:
                    return
                try:
                    self._launch()
                except WorkerStartError:
                    self._process = None
                    if self._logger:
                        self._logger.exception("worker_restart_failed")
                    return
                self._restart_count += 1

            if self._logger:
                self._logger.info("worker_restarted", restart_count=self._restart_count)
            self._restarted.emit(self)

    def _terminate(self, process: subprocess.Popen[str]) -> None:
        """Stop a process and everything it started.

        The process gets ``shutdown_timeout`` seconds to exit after terminate
        before it is killed. Its descendants are listed first and killed
        once it is gone.
        """
        if process.poll() is not None:
            return

        orphans = self._launcher.descendants(process.pid)
        try:
            process.terminate()
            try:
                _ = process.wait(timeout=self._shutdown_timeout)
            except subprocess.TimeoutExpired:
                process.kill()
                _ = process.wait(timeout=self._shutdown_timeout)
        except ProcessLookupError:
            # Process already exited
            pass
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"Failed to stop worker on port {self.port}: {e}"
            raise WorkerStopError(msg, port=self.port, cause=e) from e

        for pid in orphans:
            try:
                _ = self._launcher.kill_pid(pid)
            except WorkerStopError:
                if self._logger:
                    self._logger.exception("worker_child_kill_failed", child_pid=pid)

    def kill(self) -> None:
        """Terminate the worker process and stop the watchdog.

        Idempotent: calling it on a worker whose process is already gone
        does nothing.

        Raises:
            WorkerStopError: If the process refuses to die.
        """
        with self._lock:
            process = self._process
            reader = self._reader
            self._process = None
            self._reader = None
            self._stop_event.set()
            if self._state != WorkerState.DISPOSED:
                self._state = WorkerState.KILLED

        if process is not None:
            self._terminate(process)
            if self._logger:
                self._logger.info("worker_process_stopped", pid=process.pid)
        self._join_reader(reader)

    def dispose(self) -> None:
        """Kill the process if needed and release threads and subscribers."""
        with self._lock:
            if self._state == WorkerState.DISPOSED:
                return

        try:
            self.kill()
        finally:
            with self._lock:
                self._state = WorkerState.DISPOSED
                watchdog = self._watchdog
                reader = self._reader
                self._watchdog = None
                self._reader = None

            if watchdog is not None and watchdog is not threading.current_thread():
                watchdog.join(timeout=_JOIN_TIMEOUT)
            self._join_reader(reader)

            self._restarted.clear()
            self._progress_changed.clear()
