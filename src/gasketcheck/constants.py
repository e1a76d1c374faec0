"""
Constants for seal (gasket) integrity analysis.

Thresholds and defaults used by the press/release detector, the decay
feature extractor, the scorer and the application layers around them.
"""

from enum import Enum
from pathlib import Path

# ============================================================================
# Detector Phases
# ============================================================================


class Phase(str, Enum):
    """Phases of a single press/release test."""

    IDLE = "idle"
    BASELINE = "baseline"
    PRESS = "press"
    RELEASE = "release"
    COMPLETE = "complete"
    ERROR = "error"  # Reserved for caller-injected faults

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETE, Phase.ERROR)


class SealVerdict(str, Enum):
    """Human-facing interpretation of a score."""

    LIKELY_OK = "likely_ok"
    INCONCLUSIVE = "inconclusive"
    LIKELY_COMPROMISED = "likely_compromised"


VERDICT_LABELS = {
    SealVerdict.LIKELY_OK: "Likely OK",
    SealVerdict.INCONCLUSIVE: "Inconclusive",
    SealVerdict.LIKELY_COMPROMISED: "Likely Compromised",
}


# ============================================================================
# Algorithm Constants
# ============================================================================


class WindowConstants:
    """Constants for the rolling sample window (window.py)."""

    MAX_AGE_SEC = 5.0
    EXPECTED_RATE_HZ = 25.0
    MIN_SLOPE_POINTS = 3


class DetectorConstants:
    """
    Constants for press/release detection (detector.py).

    Configurable thresholds live on AnalyzerConfig; the values here are
    fixed parts of the state machine.
    """

    SLOPE_WINDOW_SEC = 0.5
    BASELINE_AVERAGE_SEC = 1.0
    MIN_PRESS_ELAPSED_SEC = 0.5

    # AnalyzerConfig defaults
    BASELINE_MIN_SEC = 2.0
    PRESS_SLOPE_HPA_PER_SEC = 0.15
    RELEASE_SLOPE_HPA_PER_SEC = -0.15
    BASELINE_STABILITY_SLOPE = 0.05
    MIN_PRESS_SEC = 1.5
    MIN_RELEASE_SEC = 1.0
    MAX_TEST_SEC = 12.0


class FeatureConstants:
    """Constants for exponential decay fitting (features.py)."""

    MIN_RELEASE_SAMPLES = 5
    MIN_FIT_POINTS = 3
    TAIL_FRACTION_DIVISOR = 5
    MIN_TAIL_SAMPLES = 3
    LOG_DOMAIN_EPSILON = 1e-6
    DEGENERATE_SS_TOT = 1e-12


class ScoringConstants:
    """Constants for score and verdict mapping (scoring.py)."""

    LOW_DELTA_P_HPA = 0.15
    HIGH_TAU_SEC = 0.8
    DELTA_SPAN_HPA = 0.35  # ~0.5 hPa maps to a full delta score
    TAU_OFFSET_SEC = 0.5
    DELTA_WEIGHT = 0.6
    TAU_WEIGHT = 0.4
    CONFIDENCE_FLOOR = 0.2
    CONFIDENCE_R2_WEIGHT = 0.8

    LIKELY_OK_MIN_SCORE = 70
    INCONCLUSIVE_MIN_SCORE = 40

    CALIBRATION_VERSION = 1


class StreamConstants:
    """Constants for stream preparation (sensors/streams.py)."""

    PRESSURE_DOWNSAMPLE_HZ = 25
    MOTION_DOWNSAMPLE_HZ = 50
    MOTION_DELTA_THRESHOLD = 1.5  # m/s^2 between consecutive accel samples


# ============================================================================
# Unit Conversions
# ============================================================================

NANOS_PER_SECOND = 1_000_000_000
MILLISECONDS_PER_SECOND = 1000


# ============================================================================
# Storage & Application Defaults
# ============================================================================

APP_DIR = Path.home() / ".gasketcheck"
DEFAULT_DATABASE_PATH = str(APP_DIR / "gasketcheck.db")
DEFAULT_CONFIG_FILE = "config.toml"

LOG_DIR_NAME = "logs"  # beside the config file
DEFAULT_LOG_FILE = "gasketcheck.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5

MAX_HISTORY_RESULTS = 50
DEFAULT_HISTORY_LIMIT = 10
