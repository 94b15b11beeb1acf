"""Randomized delays and ordering.

Every randomized tactic in a run draws from one :class:`Pacer`, so tests can
pin the random source and replace ``time.sleep`` with a recorder.
"""

from __future__ import annotations

import random
import time
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

# Ranges are in seconds.
HUMAN_DELAY = (1.2, 2.4)
PRE_NAVIGATION_DELAY = (0.4, 0.9)
RETRY_BACKOFF = (0.8, 1.5)


class Pacer:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rng = rng or random.Random()
        self._sleep = sleep

    def between(self, low: float, high: float) -> float:
        return self.rng.uniform(low, high)

    def pause(self, bounds: Tuple[float, float]) -> float:
        """Sleep for a random duration inside *bounds* and return it."""
        seconds = self.between(*bounds)
        self._sleep(seconds)
        return seconds

    def human_delay(self) -> float:
        return self.pause(HUMAN_DELAY)

    def before_navigation(self) -> float:
        return self.pause(PRE_NAVIGATION_DELAY)

    def backoff(self) -> float:
        return self.pause(RETRY_BACKOFF)

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """A shuffled copy of *items*; the input is left untouched."""
        result = list(items)
        self.rng.shuffle(result)
        return result
