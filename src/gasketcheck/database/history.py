"""
Result history and calibration storage.

All functions require ``init_database()`` to have been called.
"""

import logging

from sqlalchemy import delete, select

from gasketcheck.analysis.types import Calibration, SealTestResult
from gasketcheck.constants import MAX_HISTORY_RESULTS, SealVerdict
from gasketcheck.database import models
from gasketcheck.database.session import session_scope

logger = logging.getLogger(__name__)


def _to_result(row: models.TestResult) -> SealTestResult:
    return SealTestResult(
        timestamp_ms=row.timestamp_ms,
        delta_p_hpa=row.delta_p_hpa,
        tau_sec=row.tau_sec,
        score=row.score,
        confidence=row.confidence,
        verdict=SealVerdict(row.verdict),
        r2=row.r2 or 0.0,
    )


def add_result(
    result: SealTestResult, max_results: int = MAX_HISTORY_RESULTS
) -> int:
    """
    Store a result, keeping only the newest ``max_results`` entries.

    Returns:
        Database ID of the stored result
    """
    with session_scope() as session:
        row = models.TestResult(
            timestamp_ms=result.timestamp_ms,
            delta_p_hpa=result.delta_p_hpa,
            tau_sec=result.tau_sec,
            score=result.score,
            confidence=result.confidence,
            r2=result.r2,
            verdict=result.verdict.value,
        )
        session.add(row)
        session.flush()
        result_id = row.id

        keep_ids = select(models.TestResult.id).order_by(
            models.TestResult.timestamp_ms.desc(), models.TestResult.id.desc()
        ).limit(max_results)
        pruned = session.execute(
            delete(models.TestResult).where(models.TestResult.id.not_in(keep_ids))
        ).rowcount

        if pruned:
            logger.debug(f"Pruned {pruned} old result(s) from history")

    logger.info(f"Stored result {result_id} (score={result.score})")
    return result_id


def list_results(limit: int | None = None) -> list[SealTestResult]:
    """
    Return stored results, newest first.

    Args:
        limit: Maximum number of results (all if None or 0)
    """
    with session_scope() as session:
        query = select(models.TestResult).order_by(
            models.TestResult.timestamp_ms.desc(), models.TestResult.id.desc()
        )
        if limit:
            query = query.limit(limit)
        return [_to_result(row) for row in session.scalars(query)]


def count_results() -> int:
    with session_scope() as session:
        return session.query(models.TestResult).count()


def clear_results() -> int:
    """
    Delete all stored results.

    Returns:
        Number of results deleted
    """
    with session_scope() as session:
        deleted = session.execute(delete(models.TestResult)).rowcount or 0
    logger.info(f"Cleared {deleted} result(s) from history")
    return deleted


def get_calibration(default: Calibration | None = None) -> Calibration:
    """
    Return the stored calibration.

    Args:
        default: Returned when nothing is stored (library defaults if None)
    """
    with session_scope() as session:
        row = session.scalars(
            select(models.CalibrationRecord).order_by(models.CalibrationRecord.id)
        ).first()
        if row is None:
            return default or Calibration()
        return Calibration(
            low_delta_p=row.low_delta_p,
            high_tau_sec=row.high_tau_sec,
            version=row.version,
        )


def set_calibration(calibration: Calibration) -> None:
    """Store ``calibration`` as the active calibration."""
    with session_scope() as session:
        row = session.scalars(
            select(models.CalibrationRecord).order_by(models.CalibrationRecord.id)
        ).first()
        if row is None:
            row = models.CalibrationRecord()
            session.add(row)

        row.low_delta_p = calibration.low_delta_p
        row.high_tau_sec = calibration.high_tau_sec
        row.version = calibration.version

    logger.info(
        f"Calibration set: low_delta_p={calibration.low_delta_p}, "
        f"high_tau_sec={calibration.high_tau_sec}"
    )
