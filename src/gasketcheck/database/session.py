"""
SQLite binding for the result history.

The process holds one engine bound to one database file. Calling
``init_database`` again with the same file is a no-op; a different file
rebinds the engine, so each CLI invocation can honour its ``--db`` option.
"""

import logging
import os
import threading

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from gasketcheck.constants import DEFAULT_DATABASE_PATH
from gasketcheck.database.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None
_database_path: str | None = None
_init_lock = threading.Lock()


def init_database(database_path: str | None = None) -> None:
    """
    Bind the history store to a SQLite file, creating its tables if needed.

    Args:
        database_path: Path to the SQLite file. Defaults to
            DEFAULT_DATABASE_PATH.

    Raises:
        PermissionError: If the parent directory cannot be created
        ValueError: If the path is empty
    """
    global _engine, _SessionFactory, _database_path

    if database_path is None:
        database_path = DEFAULT_DATABASE_PATH
    if not database_path or not isinstance(database_path, str):
        raise ValueError(f"Invalid database path: {database_path!r}")
    database_path = os.path.abspath(database_path)

    with _init_lock:
        if _engine is not None and _database_path == database_path:
            return

        db_dir = os.path.dirname(database_path)
        try:
            os.makedirs(db_dir, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Cannot create database directory {db_dir}: {e}"
            ) from e

        if _engine is not None:
            logger.debug(f"Rebinding history from {_database_path} to {database_path}")
            _engine.dispose()

        _engine = create_engine(f"sqlite:///{database_path}")
        Base.metadata.create_all(_engine)
        _SessionFactory = sessionmaker(bind=_engine)
        _database_path = database_path
        logger.debug(f"History database: {database_path}")


@contextmanager
def session_scope() -> Generator[Session]:
    """
    Transactional scope: commits on success, rolls back on error.

    Raises:
        RuntimeError: If the database has not been initialized
    """
    if _SessionFactory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _SessionFactory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def cleanup_database() -> None:
    """Dispose of the engine and unbind; used by test teardown."""
    global _engine, _SessionFactory, _database_path

    with _init_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _SessionFactory = None
        _database_path = None
