"""Analysis type definitions."""

import math

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from gasketcheck.constants import DetectorConstants as DC
from gasketcheck.constants import Phase, SealVerdict
from gasketcheck.constants import ScoringConstants as SC

# ============================================================================
# Samples
# ============================================================================


class PressureSample(NamedTuple):
    """A single barometer reading."""

    time_ns: int
    hpa: float


# ============================================================================
# Configuration Types
# ============================================================================


class AnalyzerConfig(BaseModel):
    """
    Thresholds for the press/release detector.

    Slopes are in hPa per second, durations in seconds. ``baseline_min_sec``,
    ``baseline_stability_slope`` and ``min_press_sec`` are accepted and
    carried but do not gate any transition.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    baseline_min_sec: float = Field(
        default=DC.BASELINE_MIN_SEC, ge=0, description="Minimum baseline duration"
    )
    press_slope_hpa_per_sec: float = Field(
        default=DC.PRESS_SLOPE_HPA_PER_SEC,
        description="Slope at or above which a press is detected",
    )
    release_slope_hpa_per_sec: float = Field(
        default=DC.RELEASE_SLOPE_HPA_PER_SEC,
        description="Slope at or below which a release is detected",
    )
    baseline_stability_slope: float = Field(
        default=DC.BASELINE_STABILITY_SLOPE,
        ge=0,
        description="Maximum absolute slope for a stable baseline",
    )
    min_press_sec: float = Field(
        default=DC.MIN_PRESS_SEC, ge=0, description="Minimum press duration"
    )
    min_release_sec: float = Field(
        default=DC.MIN_RELEASE_SEC,
        ge=0,
        description="Release duration after which the test completes",
    )
    max_test_sec: float = Field(
        default=DC.MAX_TEST_SEC,
        gt=0,
        description="Total duration after which a release completes the test",
    )


class Calibration(BaseModel):
    """Scoring thresholds, stored alongside the result history."""

    model_config = ConfigDict(frozen=True)

    low_delta_p: float = Field(
        default=SC.LOW_DELTA_P_HPA, description="Delta pressure scoring zero (hPa)"
    )
    high_tau_sec: float = Field(
        default=SC.HIGH_TAU_SEC, gt=0, description="Tau span for a full tau score"
    )
    version: int = Field(default=SC.CALIBRATION_VERSION, ge=1)


# ============================================================================
# Detector State
# ============================================================================


class DetectorState(BaseModel):
    """
    Immutable snapshot of the press/release state machine.

    Attributes:
        phase: Current test phase
        baseline_hpa: Resting pressure estimate (NaN before the first sample)
        start_time_ns: Timestamp of the first sample
        press_start_ns: Timestamp the press was detected
        release_start_ns: Timestamp the release was detected
        last_sample_time_ns: Timestamp of the last sample that advanced the state
        delta_p_max: Running maximum of pressure above baseline during the press
        error: Reason supplied when the caller forced the ERROR phase
    """

    model_config = ConfigDict(frozen=True)

    phase: Phase = Phase.IDLE
    baseline_hpa: float = math.nan
    start_time_ns: int = 0
    press_start_ns: int = 0
    release_start_ns: int = 0
    last_sample_time_ns: int = 0
    delta_p_max: float = 0.0
    error: str | None = None

    @property
    def peak_hpa(self) -> float:
        return self.baseline_hpa + self.delta_p_max


# ============================================================================
# Feature & Score Types
# ============================================================================


class Features(BaseModel):
    """
    Features of the post-release pressure decay.

    Attributes:
        delta_p_max: Peak pressure rise above baseline (hPa)
        decay_tau_sec: Fitted exponential time constant (seconds, 0 if no decay)
        r2: Goodness of fit of the log-linearised decay (0-1)
    """

    model_config = ConfigDict(frozen=True)

    delta_p_max: float = Field(default=0.0, ge=0, description="Peak rise (hPa)")
    decay_tau_sec: float = Field(default=0.0, ge=0, description="Time constant (s)")
    r2: float = Field(default=0.0, ge=0, le=1, description="Fit quality")


class Score(BaseModel):
    """Seal health score (0-100) with confidence (0-1)."""

    model_config = ConfigDict(frozen=True)

    value: int = Field(ge=0, le=100, description="Seal health score")
    confidence: float = Field(ge=0, le=1, description="Score confidence")


class SealTestResult(BaseModel):
    """Outcome of one completed test, in the shape persisted to history."""

    timestamp_ms: int = Field(description="Wall-clock completion time (Unix ms)")
    delta_p_hpa: float = Field(ge=0, description="Peak rise above baseline (hPa)")
    tau_sec: float = Field(ge=0, description="Decay time constant (seconds)")
    score: int = Field(ge=0, le=100, description="Seal health score")
    confidence: float = Field(ge=0, le=1, description="Score confidence")
    verdict: SealVerdict = Field(description="Interpretation of the score")
    r2: float = Field(default=0.0, ge=0, le=1, description="Decay fit quality")
