"""Pytest configuration and fixtures for GasketCheck tests."""

import tempfile

from datetime import datetime
from pathlib import Path

import pytest


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at an empty per-test location."""
    config_path = tmp_path / "config.toml"
    monkeypatch.setenv("GASKETCHECK_CONFIG", str(config_path))
    return config_path


# =============================================================================
# Database Test Fixtures
# =============================================================================


@pytest.fixture
def temp_db():
    """Create a temporary database path for testing."""
    temp_dir = Path(tempfile.gettempdir())
    db_path = temp_dir / f"test_gasketcheck_{datetime.now().timestamp()}.db"

    yield db_path

    if db_path.exists():
        db_path.unlink()
    for ext in ["-wal", "-shm", "-journal"]:
        extra = Path(str(db_path) + ext)
        if extra.exists():
            extra.unlink()


@pytest.fixture
def initialized_db(temp_db):
    """Initialize the global session factory against a fresh database."""
    from gasketcheck.database.session import cleanup_database, init_database

    cleanup_database()
    init_database(str(temp_db))

    yield temp_db

    cleanup_database()


# =============================================================================
# Trace Fixtures
# =============================================================================


@pytest.fixture
def trace_file(tmp_path):
    """Write the reference press/release trace to a CSV file."""
    from gasketcheck.sensors.trace import save_trace
    from tests.helpers.synthetic_data import generate_press_release_trace

    path = tmp_path / "trace.csv"
    save_trace(path, [(s, True) for s in generate_press_release_trace()])
    return path
