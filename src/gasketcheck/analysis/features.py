"""
Release-phase feature extraction.

Fits the post-release pressure curve to an exponential relaxation toward an
asymptote,

    p(t) = P_inf + (p0 - P_inf) * exp(-t / tau)

by linear regression of ln(p - P_inf) against time. A well-sealed enclosure
shows a large pressure rise and a slow decay (long tau); a leaking seal lets
the compressed air escape quickly.
"""

import logging
import math

from collections.abc import Sequence

import numpy as np

from gasketcheck.analysis.types import Features, PressureSample
from gasketcheck.constants import NANOS_PER_SECOND
from gasketcheck.constants import FeatureConstants as FC

logger = logging.getLogger(__name__)


def linear_fit(x: np.ndarray, y: np.ndarray) -> tuple[float, float, float]:
    """
    Ordinary least-squares line fit.

    Args:
        x: Independent values
        y: Dependent values (same length as x)

    Returns:
        Tuple of (slope, intercept, r2). A zero-variance x axis yields
        (0, 0, 0); r2 is 0 when y itself has (near) zero variance.
    """
    n = len(x)
    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    denom = n * float(np.dot(x, x)) - sum_x * sum_x
    if denom == 0.0:
        return 0.0, 0.0, 0.0

    slope = (n * float(np.dot(x, y)) - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n

    fitted = slope * x + intercept
    ss_tot = float(np.sum((y - sum_y / n) ** 2))
    ss_res = float(np.sum((y - fitted) ** 2))
    r2 = 0.0 if ss_tot <= FC.DEGENERATE_SS_TOT else max(0.0, 1.0 - ss_res / ss_tot)

    return slope, intercept, min(r2, 1.0)


def estimate_asymptote(values: np.ndarray) -> float:
    """Mean of the trailing fifth (at least 3 samples, rounded up) of a segment."""
    tail_count = max(
        FC.MIN_TAIL_SAMPLES, math.ceil(len(values) / FC.TAIL_FRACTION_DIVISOR)
    )
    return float(np.mean(values[-tail_count:]))


def compute_features(
    baseline_hpa: float,
    peak_hpa: float,
    release_samples: Sequence[PressureSample] | Sequence[tuple[int, float]],
) -> Features:
    """
    Extract decay features from a completed test.

    Degenerate inputs never raise; they produce zeroed features so the score
    comes out with minimum confidence.

    Args:
        baseline_hpa: Pre-press baseline estimate
        peak_hpa: Maximum pressure during the press (baseline + delta_p_max)
        release_samples: (time_ns, hpa) samples from the release start onward

    Returns:
        Features with delta pressure, decay time constant and fit quality
    """
    delta_p = max(0.0, float(peak_hpa) - float(baseline_hpa))
    if len(release_samples) < FC.MIN_RELEASE_SAMPLES or delta_p <= 0.0:
        logger.debug(
            f"Insufficient release data: {len(release_samples)} samples, "
            f"delta_p={delta_p:.3f} hPa"
        )
        return Features()

    times = np.array([s[0] for s in release_samples], dtype=np.int64)
    values = np.array([s[1] for s in release_samples], dtype=np.float64)

    p_inf = estimate_asymptote(values)

    excess = values - p_inf
    valid = excess > FC.LOG_DOMAIN_EPSILON
    if np.count_nonzero(valid) < FC.MIN_FIT_POINTS:
        logger.debug(
            f"Only {np.count_nonzero(valid)} release samples above asymptote "
            f"{p_inf:.3f} hPa; skipping decay fit"
        )
        return Features(delta_p_max=delta_p)

    x = (times[valid] - times[0]).astype(np.float64) / NANOS_PER_SECOND
    y = np.log(excess[valid])

    slope, _, r2 = linear_fit(x, y)
    tau = -1.0 / slope if slope < 0 else 0.0

    logger.debug(
        f"Decay fit: P_inf={p_inf:.3f} hPa, points={len(x)}, "
        f"slope={slope:.4f}/s, tau={tau:.3f}s, r2={r2:.3f}"
    )

    return Features(delta_p_max=delta_p, decay_tau_sec=tau, r2=r2)
