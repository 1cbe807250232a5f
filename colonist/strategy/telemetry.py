"""IncomeTelemetry — rolling average of harvested energy per tick.

Samples go into a fixed-size NumPy ring buffer; the economic coordinator
asks for the mean of the most recent window.  An empty history reports
None so the coordinator can fall back to its theoretical estimate.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


@dataclass
class IncomeTelemetry:
    """Fixed-capacity history of per-tick income samples.

    Attributes:
        capacity: Samples retained; older samples are overwritten.
        samples: Ring buffer storage.
        recorded: Total samples ever recorded.
    """

    capacity: int = 100
    samples: NDArray[np.float64] = field(init=False, repr=False)
    recorded: int = 0

    def __post_init__(self) -> None:
        """Allocate the ring buffer."""
        self.samples = np.zeros(self.capacity, dtype=np.float64)

    def record(self, income: float) -> None:
        self.samples[self.recorded % self.capacity] = income
        self.recorded += 1

    def average(self, window: int = 20) -> float | None:
        """Mean of the last ``window`` samples, or None if none recorded.

        Args:
            window: Number of most recent samples to average; clipped to
                what has been recorded and to the buffer capacity.
        """
        held = min(self.recorded, self.capacity)
        if held == 0 or window <= 0:
            return None
        count = min(window, held)
        end = self.recorded % self.capacity
        indices = (np.arange(end - count, end)) % self.capacity
        return float(self.samples[indices].mean())
