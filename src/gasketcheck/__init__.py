"""
GasketCheck: seal integrity from barometer press-and-release traces.

Detects a press/release gesture in a pressure stream, fits the pressure
recovery after release and turns it into a 0-100 seal score.
"""

from gasketcheck.analysis import (
    AnalyzerConfig,
    Calibration,
    PressReleaseDetector,
    SealTestResult,
    SealTestSession,
    compute_features,
    score,
)
from gasketcheck.constants import Phase, SealVerdict

__all__ = [
    "AnalyzerConfig",
    "Calibration",
    "Phase",
    "PressReleaseDetector",
    "SealTestResult",
    "SealTestSession",
    "SealVerdict",
    "compute_features",
    "score",
]
