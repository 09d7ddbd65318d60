"""OS process launcher backed by subprocess and psutil."""

import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import final

import psutil

from rfarm.exceptions import WorkerStopError


@final
class SubprocessLauncher:
    """Spawns worker processes and kills them by process id.

    Spawned processes get a line-buffered text stdout with stderr merged
    into it and no stdin.
    """

    __slots__ = ()

    def spawn(self, command: Sequence[str], cwd: Path) -> subprocess.Popen[str]:
        return subprocess.Popen(  # noqa: S603
            list(command),
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )

    def kill_pid(self, pid: int) -> bool:
        """Forcibly terminate the process with the given id.

        Args:
            pid: The process id.

        Returns:
            True if the process was killed, False if it no longer existed.

        Raises:
            WorkerStopError: If the OS refuses to kill the process.
        """
        try:
            psutil.Process(pid).kill()
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied as e:
            msg = f"Access denied killing process {pid}"
            raise WorkerStopError(msg, cause=e) from e
        return True

    def descendants(self, pid: int) -> list[int]:
        try:
            return [child.pid for child in psutil.Process(pid).children(recursive=True)]
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return []
