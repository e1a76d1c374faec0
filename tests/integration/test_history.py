"""
Tests for the result history and calibration store.

These tests exercise the SQLAlchemy layer against a temporary SQLite file.
"""

import pytest

from sqlalchemy.exc import IntegrityError

from gasketcheck.analysis.types import Calibration, SealTestResult
from gasketcheck.constants import SealVerdict
from gasketcheck.database import history, models
from gasketcheck.database.session import (
    cleanup_database,
    init_database,
    session_scope,
)


def make_result(timestamp_ms, score=65):
    return SealTestResult(
        timestamp_ms=timestamp_ms,
        delta_p_hpa=0.39,
        tau_sec=1.02,
        score=score,
        confidence=0.98,
        verdict=SealVerdict.INCONCLUSIVE,
        r2=0.97,
    )


class TestSessionManagement:
    """Test engine and session factory lifecycle."""

    def test_uninitialized_raises(self):
        cleanup_database()
        with pytest.raises(RuntimeError, match="not initialized"):
            with session_scope():
                pass

    def test_tables_created(self, initialized_db):
        tables = set(models.Base.metadata.tables)
        assert {"test_results", "calibrations"} <= tables
        assert initialized_db.exists()

    def test_same_path_keeps_binding(self, initialized_db):
        history.add_result(make_result(1_000))
        init_database(str(initialized_db))

        assert history.count_results() == 1

    def test_other_path_rebinds(self, initialized_db, tmp_path):
        other = tmp_path / "nested" / "other.db"
        history.add_result(make_result(1_000))

        init_database(str(other))
        assert other.exists()
        assert history.count_results() == 0

        init_database(str(initialized_db))
        assert history.count_results() == 1

    def test_empty_path_rejected(self):
        with pytest.raises(ValueError, match="Invalid database path"):
            init_database("")

    def test_rollback_on_error(self, initialized_db):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(
                    models.TestResult(
                        timestamp_ms=1,
                        delta_p_hpa=0.1,
                        tau_sec=0.1,
                        score=1,
                        confidence=0.5,
                        verdict="inconclusive",
                    )
                )
                session.flush()
                raise ValueError("boom")

        assert history.count_results() == 0

    def test_score_constraint(self, initialized_db):
        with pytest.raises(IntegrityError):
            with session_scope() as session:
                session.add(
                    models.TestResult(
                        timestamp_ms=1,
                        delta_p_hpa=0.1,
                        tau_sec=0.1,
                        score=150,
                        confidence=0.5,
                        verdict="inconclusive",
                    )
                )


class TestResultHistory:
    """Test storing, listing and pruning results."""

    def test_add_and_list(self, initialized_db):
        result = make_result(1_000)
        result_id = history.add_result(result)

        assert result_id > 0
        assert history.list_results() == [result]

    def test_newest_first(self, initialized_db):
        for ts in (3_000, 1_000, 2_000):
            history.add_result(make_result(ts))

        assert [r.timestamp_ms for r in history.list_results()] == [
            3_000,
            2_000,
            1_000,
        ]

    def test_limit(self, initialized_db):
        for ts in range(5):
            history.add_result(make_result(ts))

        assert len(history.list_results(limit=2)) == 2
        assert len(history.list_results(limit=0)) == 5

    def test_keeps_newest_fifty(self, initialized_db):
        for ts in range(55):
            history.add_result(make_result(ts * 1_000, score=ts))

        results = history.list_results()
        assert history.count_results() == 50
        assert results[0].timestamp_ms == 54_000
        assert results[-1].timestamp_ms == 5_000

    def test_custom_max_results(self, initialized_db):
        for ts in range(5):
            history.add_result(make_result(ts), max_results=3)

        assert [r.timestamp_ms for r in history.list_results()] == [4, 3, 2]

    def test_clear(self, initialized_db):
        for ts in range(3):
            history.add_result(make_result(ts))

        assert history.clear_results() == 3
        assert history.list_results() == []
        assert history.clear_results() == 0

    def test_verdict_round_trips_as_enum(self, initialized_db):
        result = make_result(1, score=90).model_copy(
            update={"verdict": SealVerdict.LIKELY_OK}
        )
        history.add_result(result)

        assert history.list_results()[0].verdict is SealVerdict.LIKELY_OK


class TestCalibrationStore:
    """Test calibration persistence."""

    def test_default_when_empty(self, initialized_db):
        assert history.get_calibration() == Calibration()

    def test_fallback_default(self, initialized_db):
        fallback = Calibration(low_delta_p=0.2)
        assert history.get_calibration(default=fallback) == fallback

    def test_set_and_get(self, initialized_db):
        history.set_calibration(Calibration(low_delta_p=0.1, high_tau_sec=1.2))

        assert history.get_calibration() == Calibration(
            low_delta_p=0.1, high_tau_sec=1.2
        )

    def test_set_replaces_single_row(self, initialized_db):
        history.set_calibration(Calibration(low_delta_p=0.1))
        history.set_calibration(Calibration(low_delta_p=0.3, version=2))

        with session_scope() as session:
            assert session.query(models.CalibrationRecord).count() == 1
        assert history.get_calibration().low_delta_p == 0.3
        assert history.get_calibration().version == 2
