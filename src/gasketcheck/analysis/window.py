"""
Rolling window of pressure samples.

A fixed-capacity ring buffer of ``(time_ns, hpa)`` pairs bounded by sample
age. Provides the trailing average and trailing least-squares slope that the
press/release detector bases its decisions on.
"""

import logging
import math

import numpy as np

from gasketcheck.analysis.types import PressureSample
from gasketcheck.constants import NANOS_PER_SECOND
from gasketcheck.constants import WindowConstants as WC

logger = logging.getLogger(__name__)


class OutOfOrderSampleError(ValueError):
    """Raised when a sample is older than the latest sample in the window."""


class SampleWindow:
    """
    Time-bounded ring buffer of pressure samples.

    Capacity is sized from ``max_age_sec * expected_rate_hz``. A stream that
    runs faster than expected grows the buffer rather than dropping samples
    that are still inside the age bound.

    Example:
        >>> window = SampleWindow()
        >>> window.append(0, 1013.25)
        >>> window.average(1.0)
        1013.25
    """

    def __init__(
        self,
        max_age_sec: float = WC.MAX_AGE_SEC,
        expected_rate_hz: float = WC.EXPECTED_RATE_HZ,
    ):
        """
        Initialize an empty window.

        Args:
            max_age_sec: Samples older than ``latest - max_age_sec`` are evicted
            expected_rate_hz: Nominal sample rate used to size the buffer

        Raises:
            ValueError: If either argument is not positive
        """
        if max_age_sec <= 0:
            raise ValueError(f"max_age_sec must be positive, got {max_age_sec}")
        if expected_rate_hz <= 0:
            raise ValueError(
                f"expected_rate_hz must be positive, got {expected_rate_hz}"
            )

        self.max_age_sec = max_age_sec
        self.max_age_ns = int(round(max_age_sec * NANOS_PER_SECOND))
        capacity = int(math.ceil(max_age_sec * expected_rate_hz)) + 1

        self._times = np.zeros(capacity, dtype=np.int64)
        self._values = np.zeros(capacity, dtype=np.float32)
        self._head = 0  # index of the oldest sample
        self._length = 0
        self._grew = False

    def __len__(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        return len(self._times)

    @property
    def latest_time_ns(self) -> int | None:
        if self._length == 0:
            return None
        return int(self._times[(self._head + self._length - 1) % self.capacity])

    def append(self, time_ns: int, hpa: float) -> None:
        """
        Add a sample and evict everything older than the age bound.

        Raises:
            OutOfOrderSampleError: If ``time_ns`` precedes the latest sample
        """
        latest = self.latest_time_ns
        if latest is not None and time_ns < latest:
            raise OutOfOrderSampleError(
                f"Sample at {time_ns} ns precedes latest sample at {latest} ns"
            )

        self._evict_before(time_ns - self.max_age_ns)

        if self._length == self.capacity:
            self._grow()

        tail = (self._head + self._length) % self.capacity
        self._times[tail] = time_ns
        self._values[tail] = hpa
        self._length += 1

    def clear(self) -> None:
        self._head = 0
        self._length = 0

    def samples(self) -> list[PressureSample]:
        """Return a copy of the buffered samples, oldest first."""
        times, values = self._ordered()
        return [
            PressureSample(int(t), float(v)) for t, v in zip(times, values, strict=True)
        ]

    def average(self, duration_sec: float) -> float:
        """
        Mean pressure over the trailing ``duration_sec``.

        Returns:
            Mean of samples with ``time >= latest - duration``, NaN if empty
        """
        if self._length == 0:
            return math.nan

        _, values = self._trailing(duration_sec)
        return float(np.mean(values, dtype=np.float64))

    def slope(self, duration_sec: float) -> float:
        """
        Least-squares slope (hPa/s) over the trailing ``duration_sec``.

        Returns 0.0 when fewer than three samples fall inside the sub-window
        or all of them share one timestamp.
        """
        if self._length == 0:
            return 0.0

        times, values = self._trailing(duration_sec)
        n = len(times)
        if n < WC.MIN_SLOPE_POINTS:
            return 0.0

        # Seconds relative to the newest sample (<= 0)
        x = (times - times[-1]).astype(np.float64) / NANOS_PER_SECOND
        y = values.astype(np.float64)

        sum_x = x.sum()
        sum_y = y.sum()
        denom = n * np.dot(x, x) - sum_x * sum_x
        if denom == 0.0:
            return 0.0

        return float((n * np.dot(x, y) - sum_x * sum_y) / denom)

    # ========================================================================
    # Internals
    # ========================================================================

    def _indices(self) -> np.ndarray:
        return (self._head + np.arange(self._length)) % self.capacity

    def _ordered(self) -> tuple[np.ndarray, np.ndarray]:
        idx = self._indices()
        return self._times[idx], self._values[idx]

    def _trailing(self, duration_sec: float) -> tuple[np.ndarray, np.ndarray]:
        times, values = self._ordered()
        cutoff = times[-1] - int(round(duration_sec * NANOS_PER_SECOND))
        start = int(np.searchsorted(times, cutoff, side="left"))
        return times[start:], values[start:]

    def _evict_before(self, cutoff_ns: int) -> None:
        while self._length > 0 and self._times[self._head] < cutoff_ns:
            self._head = (self._head + 1) % self.capacity
            self._length -= 1

    def _grow(self) -> None:
        times, values = self._ordered()
        new_capacity = self.capacity * 2

        if not self._grew:
            logger.warning(
                f"Sample window full with unexpired samples; growing capacity "
                f"{self.capacity} -> {new_capacity}. Stream is faster than expected."
            )
            self._grew = True

        self._times = np.zeros(new_capacity, dtype=np.int64)
        self._values = np.zeros(new_capacity, dtype=np.float32)
        self._times[: self._length] = times
        self._values[: self._length] = values
        self._head = 0
