"""
Database connection and session management module.

Uses SQLAlchemy for ORM operations. Supports PostgreSQL (production/Docker)
and SQLite (local development fallback). Route handlers receive a session
through the get_db dependency and pass it explicitly into the service layer.
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from myanedu.config import DATABASE_URL
from myanedu.errors import StorageError
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("db")

# SQLite does not support pool_size, max_overflow, or pool_pre_ping
engine_kwargs = {"echo": False}

if DATABASE_URL.startswith("postgresql"):
    engine_kwargs.update({
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
    })
elif DATABASE_URL.startswith("sqlite"):
    # SQLite needs check_same_thread=False for FastAPI (multi-threaded)
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_kwargs)


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable WAL mode and foreign key enforcement on SQLite connections."""
    # pysqlite's own transaction handling would release SAVEPOINTs as
    # top-level commits; SQLAlchemy emits BEGIN itself instead
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def begin_sqlite_transaction(conn):
    conn.exec_driver_sql("BEGIN")


def configure_sqlite_engine(sqlite_engine):
    """Attach the SQLite connection hooks to an engine."""
    event.listen(sqlite_engine, "connect", set_sqlite_pragma)
    event.listen(sqlite_engine, "begin", begin_sqlite_transaction)


if DATABASE_URL.startswith("sqlite"):
    configure_sqlite_engine(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    Timestamps are stored naive-UTC so values read back from SQLite compare
    cleanly with freshly computed ones.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    """
    FastAPI dependency that provides a database session.

    Yields a session and ensures proper cleanup after request completion,
    even if an exception occurs during request processing.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Create all database tables directly (used for SQLite local dev).
    For PostgreSQL, use Alembic migrations instead.
    """
    Base.metadata.create_all(bind=engine)


def commit_or_rollback(db, message: str, **context):
    """
    Commit the session; on a database error roll back and raise StorageError.

    Args:
        db: Session to commit
        message: Error message surfaced to the caller on failure
        context: Business identifiers attached to the error and the log entry
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "{}: {}".format(message, str(e)), context=context)
        raise StorageError(message, **context) from e


def config_safe_url(url: str) -> str:
    """
    Escape a database URL for ConfigParser-backed settings such as alembic.ini.

    Percent-encoded passwords (e.g. p%40ss) would otherwise be read as
    interpolation syntax.
    """
    return url.replace("%", "%%")
