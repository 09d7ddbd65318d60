"""Exception hierarchy for rfarm.

Configuration problems derive from ConfigError, process problems from
WorkerError and pool-wide problems from PoolError. All share RFarmError.
"""

from pathlib import Path
from typing import Any


class RFarmError(Exception):
    """Root of every error raised by rfarm."""


class ConfigError(RFarmError):
    """Config could not be read, parsed or resolved."""


class ConfigLoadError(ConfigError):
    """The config file is unreadable or not valid TOML.

    ``line`` and ``column`` point at the parse error when known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """A config value has the wrong shape, e.g. an inverted port range."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


class AddressResolutionError(ConfigError):
    """Raised when the controller host cannot be resolved to an IP address.

    Every worker in the pool reports to the same controller, so this is
    fatal for the whole pool manager.

    Attributes:
        host: The configured host name that failed to resolve.
    """

    def __init__(
        self,
        message: str,
        *,
        host: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and host context.

        Args:
            message: Human-readable error message.
            host: The host name that could not be resolved.
            cause: The underlying lookup error, if any.
        """
        super().__init__(message)
        self.host: str = host
        self.cause: Exception | None = cause


# =============================================================================
# Worker Exceptions
# =============================================================================


class WorkerError(RFarmError):
    """Base exception for worker process errors."""

    def __init__(
        self,
        message: str,
        *,
        port: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and worker context.

        Args:
            message: Human-readable error message.
            port: Port of the worker that failed.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.port: int | None = port
        self.cause: Exception | None = cause


class WorkerStartError(WorkerError):
    """Raised when a worker process cannot be started."""


class WorkerStopError(WorkerError):
    """Raised when a worker process cannot be stopped."""


# =============================================================================
# Pool Exceptions
# =============================================================================


class PoolError(RFarmError):
    """Base exception for worker pool errors."""


class PoolShutdownError(PoolError):
    """Raised when one or more workers failed to shut down cleanly.

    The shutdown sweep continues past individual failures; this error is
    raised once the sweep is complete.

    Attributes:
        failures: Mapping of worker port to the exception raised for it.
    """

    def __init__(self, message: str, *, failures: dict[int, Exception]) -> None:
        """Initialize with error message and per-worker failures.

        Args:
            message: Human-readable error message.
            failures: Mapping of worker port to the exception raised for it.
        """
        super().__init__(message)
        self.failures: dict[int, Exception] = failures
