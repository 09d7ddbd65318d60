"""Random port allocation within the configured worker port range."""

import random
from collections.abc import Container
from typing import final

from structlog.typing import FilteringBoundLogger

from rfarm.config import PortRange


@final
class PortAllocator:
    """Draws ports uniformly at random from a port range.

    The allocator keeps no state of its own: callers pass the set of ports
    in use and must hold the lock guarding that set across the call and the
    subsequent insertion, so the check and the claim are atomic.

    Draws are retried without bound while they collide, so allocation gets
    slower as the range fills up and never terminates once it is full.
    """

    __slots__ = ("_logger", "_rng", "port_range")

    def __init__(
        self,
        port_range: PortRange,
        *,
        rng: random.Random | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.port_range = port_range
        self._rng = rng or random.Random()  # noqa: S311
        self._logger = logger

    def allocate(self, in_use: Container[int]) -> int:
        """Return a port in the range that is not in ``in_use``.

        Args:
            in_use: Ports already claimed.

        Returns:
            A free port in ``[start, stop)``.
        """
        attempts = 0
        while True:
            attempts += 1
            port = self._rng.randrange(self.port_range.start, self.port_range.stop)
            if port not in in_use:
                break

        if self._logger:
            self._logger.debug("port_allocated", port=port, attempts=attempts)
        return port
