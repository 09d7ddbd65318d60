"""Relaunch delays for workers that keep failing.

Workers that went silent at the same moment (for example after a
controller outage) get spread-out delays so they do not relaunch in
lockstep.
"""

import random
from dataclasses import dataclass, field

_MAX_EXPONENT = 32


@dataclass(frozen=True, slots=True)
class RestartBackoff:
    """Delay before relaunching a worker after consecutive failures.

    ``initial * factor ** failures``, capped at ``ceiling``, then moved by
    a random amount of up to ``spread / 2`` of itself in either direction.

    Attributes:
        initial: Delay in seconds after the first failure.
        ceiling: Upper bound in seconds before the spread is applied.
        factor: Growth factor per consecutive failure.
        spread: Fraction of the delay to randomize (0.0-1.0).
        rng: Random source for the spread.
    """

    initial: float = 1.0
    ceiling: float = 30.0
    factor: float = 2.0
    spread: float = 0.1
    rng: random.Random = field(
        default_factory=random.Random, compare=False, repr=False
    )

    def delay(self, failures: int) -> float:
        """Return the delay in seconds before the next relaunch.

        Args:
            failures: Consecutive failures so far, 0 for the first relaunch.

        Raises:
            ValueError: If failures is negative.
        """
        if failures < 0:
            msg = f"failures must not be negative, got {failures}"
            raise ValueError(msg)

        seconds = min(
            self.initial * self.factor ** min(failures, _MAX_EXPONENT), self.ceiling
        )
        if self.spread <= 0:
            return seconds

        offset = self.rng.uniform(-0.5, 0.5) * self.spread * seconds
        return max(0.0, seconds + offset)
