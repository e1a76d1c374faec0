"""
Signal conditioning primitives for pressure streams.

These are standalone preprocessing tools. The press/release detector works
on the raw window and does not route samples through them.
"""

from collections.abc import Sequence

import numpy as np

from scipy import ndimage

from gasketcheck.constants import NANOS_PER_SECOND


def median_filter(samples: Sequence[float] | np.ndarray, window: int = 3) -> np.ndarray:
    """
    Median-filter a sequence with edge replication at the boundaries.

    Args:
        samples: Input values
        window: Odd window length, at least 3

    Returns:
        Filtered values, same length as the input

    Raises:
        ValueError: If window is even or smaller than 3
    """
    if window < 3 or window % 2 == 0:
        raise ValueError(f"Window must be odd and >= 3, got {window}")

    values = np.asarray(samples, dtype=np.float64)
    if values.size == 0:
        return values

    # mode="nearest" clamps out-of-range indices to the nearest edge sample
    return ndimage.median_filter(values, size=window, mode="nearest")


class LowPassFilter:
    """
    One-pole IIR low-pass filter with a time constant.

    The smoothing factor is derived per sample from the timestamp delta, so
    irregular sample spacing is handled naturally.

    Example:
        >>> lp = LowPassFilter(tau_sec=1.0)
        >>> lp.filter(0, 1013.0)
        1013.0
    """

    def __init__(self, tau_sec: float):
        self.tau_sec = tau_sec
        self._y: float | None = None
        self._last_time_ns: int | None = None

    @property
    def initialized(self) -> bool:
        return self._y is not None

    def reset(self) -> None:
        self._y = None
        self._last_time_ns = None

    def filter(self, time_ns: int, x: float) -> float:
        """
        Filter one sample.

        The first sample after construction or reset() passes through
        unchanged. A non-positive time delta or time constant also passes the
        new sample through (alpha = 1).
        """
        if self._y is None or self._last_time_ns is None:
            self._y = float(x)
            self._last_time_ns = time_ns
            return self._y

        dt_sec = max(0, time_ns - self._last_time_ns) / NANOS_PER_SECOND
        if self.tau_sec <= 0 or dt_sec <= 0:
            alpha = 1.0
        else:
            alpha = dt_sec / (self.tau_sec + dt_sec)

        self._y = self._y + alpha * (float(x) - self._y)
        self._last_time_ns = time_ns
        return self._y


class HighPassFilter:
    """High-pass filter computed as ``x - lowpass(x)``; removes slow drift."""

    def __init__(self, tau_sec: float):
        self.tau_sec = tau_sec
        self._low_pass = LowPassFilter(tau_sec)

    def reset(self) -> None:
        self._low_pass.reset()

    def filter(self, time_ns: int, x: float) -> float:
        return float(x) - self._low_pass.filter(time_ns, x)
