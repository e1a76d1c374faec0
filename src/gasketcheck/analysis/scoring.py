"""Seal health scoring."""

import math

from gasketcheck.analysis.types import Calibration, Features, Score
from gasketcheck.constants import ScoringConstants as SC
from gasketcheck.constants import SealVerdict


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def score(
    features: Features,
    low_delta_p: float = SC.LOW_DELTA_P_HPA,
    high_tau_sec: float = SC.HIGH_TAU_SEC,
) -> Score:
    """
    Map decay features to a 0-100 seal health score.

    The pressure rise carries 60% of the weight and the decay time constant
    40%. Confidence follows the decay fit quality, with a floor of 0.2.

    Args:
        features: Extracted release-phase features
        low_delta_p: Pressure rise (hPa) at or below which the rise scores zero
        high_tau_sec: Tau span (seconds above 0.5 s) for a full tau score

    Returns:
        Score with integer value and confidence
    """
    delta_score = _clamp01((features.delta_p_max - low_delta_p) / SC.DELTA_SPAN_HPA)
    tau_score = _clamp01((features.decay_tau_sec - SC.TAU_OFFSET_SEC) / high_tau_sec)
    raw = SC.DELTA_WEIGHT * delta_score + SC.TAU_WEIGHT * tau_score

    # Round half up: 12.5 -> 13 (round() would give 12)
    value = min(100, max(0, math.floor(100.0 * raw + 0.5)))
    confidence = _clamp01(SC.CONFIDENCE_FLOOR + SC.CONFIDENCE_R2_WEIGHT * features.r2)

    return Score(value=value, confidence=confidence)


def score_with_calibration(features: Features, calibration: Calibration) -> Score:
    return score(
        features,
        low_delta_p=calibration.low_delta_p,
        high_tau_sec=calibration.high_tau_sec,
    )


def classify_verdict(result: Score) -> SealVerdict:
    """
    Interpret a score for presentation.

    A score whose confidence sits at the floor came from a degenerate fit and
    is always inconclusive, whatever its value.
    """
    if result.confidence <= SC.CONFIDENCE_FLOOR:
        return SealVerdict.INCONCLUSIVE
    if result.value >= SC.LIKELY_OK_MIN_SCORE:
        return SealVerdict.LIKELY_OK
    if result.value >= SC.INCONCLUSIVE_MIN_SCORE:
        return SealVerdict.INCONCLUSIVE
    return SealVerdict.LIKELY_COMPROMISED
