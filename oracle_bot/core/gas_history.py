# /oracle_bot/core/gas_history.py
import math
from collections import deque
from statistics import fmean, median
from typing import Deque, Dict, Optional

from oracle_bot.core.types import GasSample


class GasPriceHistory:
    """
    Fixed-capacity FIFO of recent gas observations.

    The deque keeps observation order for eviction. Percentiles are taken from
    a sorted copy so that order is never disturbed.
    """
    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._samples: Deque[GasSample] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, sample: GasSample) -> None:
        self._samples.append(sample)

    def values(self) -> list[float]:
        """Values in observation order, oldest first."""
        return [s.value_gwei for s in self._samples]

    def latest(self) -> Optional[GasSample]:
        return self._samples[-1] if self._samples else None

    def average(self) -> float:
        if not self._samples:
            return 0.0
        return fmean(self.values())

    def percentile(self, p: float) -> float:
        """Value at sorted rank floor(p * n). 0 when empty: no confident low-end estimate."""
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"percentile must be within [0, 1], got {p}")
        if not self._samples:
            return 0.0
        ordered = sorted(self.values())
        rank = min(math.floor(p * len(ordered)), len(ordered) - 1)
        return ordered[rank]

    def stats(self) -> Dict[str, float]:
        if not self._samples:
            return {}
        values = self.values()
        return {"min": min(values), "max": max(values), "median": median(values)}
