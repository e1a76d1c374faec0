"""
Single-session test runner.

Drives one press/release test from an ordered sample iterator to a scored
result: detector -> feature extraction -> scoring -> verdict.
"""

import logging
import time

from collections.abc import Iterable

from gasketcheck.analysis.detector import PressReleaseDetector
from gasketcheck.analysis.features import compute_features
from gasketcheck.analysis.scoring import classify_verdict, score_with_calibration
from gasketcheck.analysis.types import (
    AnalyzerConfig,
    Calibration,
    DetectorState,
    PressureSample,
    SealTestResult,
)
from gasketcheck.constants import MILLISECONDS_PER_SECOND, NANOS_PER_SECOND, Phase
from gasketcheck.constants import WindowConstants as WC

logger = logging.getLogger(__name__)

__all__ = ["SealTestSession", "SealTestResult"]


class SealTestSession:
    """
    Runs one seal test over a single ordered sample stream.

    After the detector reports COMPLETE the session keeps feeding samples for
    ``settle_sec`` of sample time so the release segment in the window can
    settle toward its asymptote before the decay fit.

    Example:
        >>> session = SealTestSession(settle_sec=1.0)
        >>> result = session.run(samples)
        >>> if result:
        ...     print(f"{result.score}/100 ({result.verdict.value})")
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        calibration: Calibration | None = None,
        settle_sec: float = 0.0,
        expected_rate_hz: float = WC.EXPECTED_RATE_HZ,
    ):
        """
        Initialize a session.

        Args:
            config: Detector thresholds
            calibration: Scoring thresholds
            settle_sec: Extra sample time to collect after COMPLETE
            expected_rate_hz: Nominal sample rate (sizes the detector window)

        Raises:
            ValueError: If settle_sec is negative, or long enough together
                with min_release_sec that the window would evict the start
                of the release segment before finish()
        """
        if settle_sec < 0:
            raise ValueError(f"settle_sec must be >= 0, got {settle_sec}")

        self.config = config or AnalyzerConfig()
        # Release start must still be in the window when the decay is fitted
        if self.config.min_release_sec + settle_sec >= WC.MAX_AGE_SEC:
            raise ValueError(
                f"min_release_sec + settle_sec must be < {WC.MAX_AGE_SEC:g}s "
                f"(the sample window), got {self.config.min_release_sec:g} "
                f"+ {settle_sec:g}"
            )

        self.calibration = calibration or Calibration()
        self.settle_sec = settle_sec
        self.detector = PressReleaseDetector(self.config, expected_rate_hz)

        self._complete_at_ns: int | None = None
        self._latest_time_ns = 0
        self._result: SealTestResult | None = None
        self._finished = False

    @property
    def phase(self) -> Phase:
        return self.detector.phase

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def ready_to_finish(self) -> bool:
        """True once the test completed and the settle period has elapsed."""
        if self._complete_at_ns is None:
            return False
        elapsed_ns = self._latest_time_ns - self._complete_at_ns
        return elapsed_ns / NANOS_PER_SECOND >= self.settle_sec

    def feed(
        self, time_ns: int, pressure_hpa: float, motion_ok: bool = True
    ) -> DetectorState:
        """Feed one sample to the detector and track completion."""
        state = self.detector.on_sample(time_ns, pressure_hpa, motion_ok)
        self._latest_time_ns = max(self._latest_time_ns, int(time_ns))
        if state.phase == Phase.COMPLETE and self._complete_at_ns is None:
            self._complete_at_ns = state.last_sample_time_ns
            logger.info(
                f"Test complete; collecting {self.settle_sec:.1f}s of settle samples"
            )
        return state

    def fail(self, reason: str) -> DetectorState:
        return self.detector.fail(reason)

    def finish(self, timestamp_ms: int | None = None) -> SealTestResult | None:
        """
        Score the completed test.

        Args:
            timestamp_ms: Completion time to record; wall clock if omitted

        Returns:
            The scored result, or None if the test never completed
        """
        if self._finished:
            return self._result
        self._finished = True

        state = self.detector.state
        if state.phase != Phase.COMPLETE:
            logger.warning(
                f"Test ended in phase {state.phase.value} without completing"
                + (f": {state.error}" if state.error else "")
            )
            return None

        release = self.detector.release_samples()
        features = compute_features(state.baseline_hpa, state.peak_hpa, release)
        result_score = score_with_calibration(features, self.calibration)
        verdict = classify_verdict(result_score)

        if timestamp_ms is None:
            timestamp_ms = int(time.time() * MILLISECONDS_PER_SECOND)

        self._result = SealTestResult(
            timestamp_ms=timestamp_ms,
            delta_p_hpa=features.delta_p_max,
            tau_sec=features.decay_tau_sec,
            score=result_score.value,
            confidence=result_score.confidence,
            verdict=verdict,
            r2=features.r2,
        )

        logger.info(
            f"Result: score={result_score.value} "
            f"confidence={result_score.confidence:.2f} verdict={verdict.value} "
            f"(delta_p={features.delta_p_max:.3f} hPa, "
            f"tau={features.decay_tau_sec:.2f}s, r2={features.r2:.3f}, "
            f"release_samples={len(release)})"
        )
        return self._result

    def run(
        self,
        samples: Iterable[tuple[PressureSample, bool]],
        timestamp_ms: int | None = None,
    ) -> SealTestResult | None:
        """
        Consume a sample stream until the test is scored or the stream ends.

        Args:
            samples: Ordered (pressure sample, motion_ok) pairs
            timestamp_ms: Completion time to record; wall clock if omitted

        Returns:
            The scored result, or None if the test never completed
        """
        for sample, motion_ok in samples:
            state = self.feed(sample.time_ns, sample.hpa, motion_ok)
            if state.phase == Phase.ERROR or self.ready_to_finish:
                break

        return self.finish(timestamp_ms)
