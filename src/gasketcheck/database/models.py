"""
SQLAlchemy ORM models for the GasketCheck history database.

Defines:
- test_results: one row per scored seal test
- calibrations: scoring thresholds (single active row)
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC timestamp for database defaults."""
    return datetime.now(UTC)


class TestResult(Base):
    """A scored seal test."""

    __tablename__ = "test_results"
    __test__ = False  # not a pytest test class

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    timestamp_ms: Mapped[int] = mapped_column(Integer, index=True)
    delta_p_hpa: Mapped[float] = mapped_column(Float)
    tau_sec: Mapped[float] = mapped_column(Float)
    score: Mapped[int] = mapped_column(Integer)
    confidence: Mapped[float] = mapped_column(Float)
    r2: Mapped[float] = mapped_column(Float, default=0.0)
    verdict: Mapped[str] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="chk_score_range"),
        CheckConstraint(
            "confidence >= 0 AND confidence <= 1", name="chk_confidence_range"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<TestResult(id={self.id}, timestamp_ms={self.timestamp_ms}, "
            f"score={self.score})>"
        )


class CalibrationRecord(Base):
    """Scoring thresholds in use."""

    __tablename__ = "calibrations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    low_delta_p: Mapped[float] = mapped_column(Float)
    high_tau_sec: Mapped[float] = mapped_column(Float)
    version: Mapped[int] = mapped_column(Integer, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (CheckConstraint("high_tau_sec > 0", name="chk_high_tau"),)

    def __repr__(self) -> str:
        return (
            f"<CalibrationRecord(low_delta_p={self.low_delta_p}, "
            f"high_tau_sec={self.high_tau_sec}, version={self.version})>"
        )
