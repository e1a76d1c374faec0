"""
Seal integrity analysis.

Streaming press/release detection, decay feature extraction and scoring.
"""

from gasketcheck.analysis.detector import PressReleaseDetector, advance
from gasketcheck.analysis.features import compute_features, linear_fit
from gasketcheck.analysis.filters import HighPassFilter, LowPassFilter, median_filter
from gasketcheck.analysis.scoring import (
    classify_verdict,
    score,
    score_with_calibration,
)
from gasketcheck.analysis.session import SealTestSession
from gasketcheck.analysis.types import (
    AnalyzerConfig,
    Calibration,
    DetectorState,
    Features,
    PressureSample,
    Score,
    SealTestResult,
)
from gasketcheck.analysis.window import OutOfOrderSampleError, SampleWindow

__all__ = [
    "AnalyzerConfig",
    "Calibration",
    "DetectorState",
    "Features",
    "HighPassFilter",
    "LowPassFilter",
    "OutOfOrderSampleError",
    "PressReleaseDetector",
    "PressureSample",
    "SampleWindow",
    "Score",
    "SealTestResult",
    "SealTestSession",
    "advance",
    "classify_verdict",
    "compute_features",
    "linear_fit",
    "median_filter",
    "score",
    "score_with_calibration",
]
