"""
Sample stream preparation.

Iterator helpers that sit between a sensor source (live or recorded) and the
detector: rate limiting, motion gating, and pairing pressure samples with the
gate.
"""

import logging
import math

from collections.abc import Callable, Iterable, Iterator
from typing import NamedTuple, TypeVar

from gasketcheck.analysis.types import PressureSample
from gasketcheck.constants import NANOS_PER_SECOND
from gasketcheck.constants import StreamConstants as STC

logger = logging.getLogger(__name__)


class MotionSample(NamedTuple):
    """A single accelerometer reading (m/s^2)."""

    time_ns: int
    ax: float
    ay: float
    az: float


S = TypeVar("S")


def downsample(
    samples: Iterable[S],
    target_hz: int,
    key: Callable[[S], int] | None = None,
) -> Iterator[S]:
    """
    Limit a sample stream to roughly ``target_hz``.

    The first sample is always emitted; after that a sample is emitted once at
    least ``1 / target_hz`` seconds have passed since the last emitted one.

    Args:
        samples: Time-ordered samples
        target_hz: Maximum output rate
        key: Returns the timestamp (ns) of a sample; defaults to ``sample.time_ns``

    Raises:
        ValueError: If target_hz is not positive (raised on call, before
            iteration starts)
    """
    if target_hz <= 0:
        raise ValueError(f"target_hz must be positive, got {target_hz}")
    return _downsample(samples, NANOS_PER_SECOND // target_hz, key or _time_ns)


def _time_ns(sample) -> int:
    return sample.time_ns


def _downsample(
    samples: Iterable[S], min_delta_ns: int, key: Callable[[S], int]
) -> Iterator[S]:
    last_emit_ns: int | None = None
    for sample in samples:
        time_ns = key(sample)
        if last_emit_ns is None or time_ns - last_emit_ns >= min_delta_ns:
            last_emit_ns = time_ns
            yield sample


class MotionGate:
    """
    Decides whether the device is steady enough to trust a press.

    Compares each accelerometer sample with the previous one; a change in
    magnitude at or above ``threshold`` (m/s^2) closes the gate.
    """

    def __init__(self, threshold: float = STC.MOTION_DELTA_THRESHOLD):
        self.threshold = threshold
        self._previous: MotionSample | None = None
        self._ok = True

    @property
    def ok(self) -> bool:
        return self._ok

    def reset(self) -> None:
        self._previous = None
        self._ok = True

    def update(self, sample: MotionSample) -> bool:
        previous = self._previous
        self._previous = sample
        if previous is None:
            self._ok = True
            return self._ok

        change = math.sqrt(
            (sample.ax - previous.ax) ** 2
            + (sample.ay - previous.ay) ** 2
            + (sample.az - previous.az) ** 2
        )
        self._ok = change < self.threshold
        if not self._ok:
            logger.debug(
                f"Motion gate closed at {sample.time_ns} ns (delta={change:.2f} m/s^2)"
            )
        return self._ok


def gate_pressure(
    pressure: Iterable[PressureSample],
    motion: Iterable[MotionSample] | None = None,
    threshold: float = STC.MOTION_DELTA_THRESHOLD,
) -> Iterator[tuple[PressureSample, bool]]:
    """
    Pair each pressure sample with the motion gate state.

    The gate state for a pressure sample comes from the most recent motion
    sample at or before it. Without motion data (or before the first motion
    sample) the gate is open.

    Args:
        pressure: Time-ordered pressure samples
        motion: Time-ordered accelerometer samples, optional
        threshold: Motion gate threshold (m/s^2)

    Yields:
        (pressure sample, motion_ok) pairs
    """
    if motion is None:
        for sample in pressure:
            yield sample, True
        return

    gate = MotionGate(threshold)
    motion_iter = iter(motion)
    pending = next(motion_iter, None)

    for sample in pressure:
        while pending is not None and pending.time_ns <= sample.time_ns:
            gate.update(pending)
            pending = next(motion_iter, None)
        yield sample, gate.ok
