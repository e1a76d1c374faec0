"""
Streaming press/release detector.

The detector follows a single test through BASELINE -> PRESS -> RELEASE ->
COMPLETE using the slope of the barometric pressure trace. Pressing the
device compresses the sealed air pocket (rising pressure, positive slope);
releasing lets it relax toward the baseline (negative slope).

The transition logic lives in the pure function ``advance``; the
``PressReleaseDetector`` class owns the sample window and the current state
and feeds both through it one sample at a time.
"""

import logging

import numpy as np

from gasketcheck.analysis.types import AnalyzerConfig, DetectorState, PressureSample
from gasketcheck.analysis.window import SampleWindow
from gasketcheck.constants import NANOS_PER_SECOND, Phase
from gasketcheck.constants import DetectorConstants as DC
from gasketcheck.constants import WindowConstants as WC

logger = logging.getLogger(__name__)


def _elapsed_sec(now_ns: int, since_ns: int) -> float:
    return (now_ns - since_ns) / NANOS_PER_SECOND


def advance(
    state: DetectorState,
    time_ns: int,
    pressure_hpa: float,
    motion_ok: bool,
    window: SampleWindow,
    config: AnalyzerConfig,
) -> DetectorState:
    """
    Compute the next detector state for one sample.

    The window must already contain the sample; it is only read here.

    Args:
        state: Current state
        time_ns: Sample timestamp (nanoseconds)
        pressure_hpa: Sample pressure (hPa)
        motion_ok: Whether the device was steady enough to accept a press
        window: Rolling sample window including this sample
        config: Detector thresholds

    Returns:
        The new state (``state`` itself for terminal phases)
    """
    if state.phase.is_terminal:
        return state

    if state.phase == Phase.IDLE:
        return DetectorState(
            phase=Phase.BASELINE,
            baseline_hpa=pressure_hpa,
            start_time_ns=time_ns,
            last_sample_time_ns=time_ns,
        )

    if state.phase == Phase.BASELINE:
        baseline = window.average(DC.BASELINE_AVERAGE_SEC)
        slope = window.slope(DC.SLOPE_WINDOW_SEC)

        # Readiness is reported but does not gate the press
        ready = (
            _elapsed_sec(time_ns, state.start_time_ns) >= config.baseline_min_sec
            and abs(slope) <= config.baseline_stability_slope
        )
        logger.debug(
            f"baseline={baseline:.3f} hPa, slope={slope:+.3f} hPa/s, "
            f"ready={ready}, motion_ok={motion_ok}"
        )

        if motion_ok and slope >= config.press_slope_hpa_per_sec:
            return state.model_copy(
                update={
                    "phase": Phase.PRESS,
                    "baseline_hpa": baseline,
                    "press_start_ns": time_ns,
                    "last_sample_time_ns": time_ns,
                    "delta_p_max": max(0.0, pressure_hpa - baseline),
                }
            )
        return state.model_copy(
            update={"baseline_hpa": baseline, "last_sample_time_ns": time_ns}
        )

    if state.phase == Phase.PRESS:
        delta = max(0.0, pressure_hpa - state.baseline_hpa)
        delta_p_max = max(state.delta_p_max, delta)
        slope = window.slope(DC.SLOPE_WINDOW_SEC)
        pressed_for = _elapsed_sec(time_ns, state.press_start_ns)

        if (
            slope <= config.release_slope_hpa_per_sec
            and pressed_for >= DC.MIN_PRESS_ELAPSED_SEC
        ):
            return state.model_copy(
                update={
                    "phase": Phase.RELEASE,
                    "delta_p_max": delta_p_max,
                    "release_start_ns": time_ns,
                    "last_sample_time_ns": time_ns,
                }
            )
        return state.model_copy(
            update={"delta_p_max": delta_p_max, "last_sample_time_ns": time_ns}
        )

    # Phase.RELEASE
    released_for = _elapsed_sec(time_ns, state.release_start_ns)
    total = _elapsed_sec(time_ns, state.start_time_ns)
    if released_for >= config.min_release_sec or total >= config.max_test_sec:
        return state.model_copy(
            update={"phase": Phase.COMPLETE, "last_sample_time_ns": time_ns}
        )
    return state.model_copy(update={"last_sample_time_ns": time_ns})


class PressReleaseDetector:
    """
    Detects a press-and-release interaction in a pressure stream.

    One instance serves one test session and one sample stream; it is not
    safe to feed from multiple producers.

    Example:
        >>> detector = PressReleaseDetector()
        >>> state = detector.on_sample(0, 1013.25)
        >>> state.phase
        <Phase.BASELINE: 'baseline'>
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        expected_rate_hz: float = WC.EXPECTED_RATE_HZ,
    ):
        """
        Initialize the detector.

        Args:
            config: Detector thresholds (defaults if not given)
            expected_rate_hz: Nominal sample rate, used to size the window
        """
        self.config = config or AnalyzerConfig()
        self._window = SampleWindow(
            max_age_sec=WC.MAX_AGE_SEC, expected_rate_hz=expected_rate_hz
        )
        self._state = DetectorState()

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def state(self) -> DetectorState:
        return self._state

    def reset(self) -> None:
        """Return to IDLE with an empty window."""
        self._state = DetectorState()
        self._window.clear()

    def on_sample(
        self, time_ns: int, pressure_hpa: float, motion_ok: bool = True
    ) -> DetectorState:
        """
        Process one pressure sample.

        Samples older than the newest accepted sample are dropped and leave
        the state untouched. Samples keep entering the window after the test
        has reached a terminal phase.

        Returns:
            The updated detector state
        """
        time_ns = int(time_ns)
        # Pressure is carried at sensor (32-bit) precision
        pressure_hpa = float(np.float32(pressure_hpa))

        latest = self._window.latest_time_ns
        if latest is not None and time_ns < latest:
            logger.debug(
                f"Dropping out-of-order sample at {time_ns} ns (latest {latest} ns)"
            )
            return self._state

        self._window.append(time_ns, pressure_hpa)

        previous = self._state.phase
        self._state = advance(
            self._state, time_ns, pressure_hpa, motion_ok, self._window, self.config
        )

        if self._state.phase != previous:
            logger.info(
                f"Phase {previous.value} -> {self._state.phase.value} at "
                f"{time_ns / NANOS_PER_SECOND:.3f}s "
                f"(baseline={self._state.baseline_hpa:.3f} hPa, "
                f"delta_p_max={self._state.delta_p_max:.3f} hPa)"
            )

        return self._state

    def fail(self, reason: str) -> DetectorState:
        """
        Force the ERROR phase, e.g. when the sensor disconnects mid-test.

        Has no effect once the test is already COMPLETE or in ERROR.
        """
        if self._state.phase.is_terminal:
            return self._state

        logger.warning(f"Test aborted in phase {self._state.phase.value}: {reason}")
        self._state = self._state.model_copy(
            update={"phase": Phase.ERROR, "error": reason}
        )
        return self._state

    def window_samples(self) -> list[PressureSample]:
        """Snapshot of the buffered samples, oldest first."""
        return self._window.samples()

    def release_samples(self) -> list[PressureSample]:
        """Buffered samples at or after the detected release start."""
        if self._state.phase not in (Phase.RELEASE, Phase.COMPLETE):
            return []
        start = self._state.release_start_ns
        release = [s for s in self._window.samples() if s.time_ns >= start]
        if release and release[0].time_ns > start:
            logger.warning(
                f"Release start evicted from the window; segment begins "
                f"{(release[0].time_ns - start) / NANOS_PER_SECOND:.2f}s late"
            )
        return release
