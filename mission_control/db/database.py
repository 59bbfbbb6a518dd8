"""Database engine and session management."""

from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from mission_control.config import get_settings
from mission_control.core.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

_engine: Engine | None = None
_session_local: sessionmaker | None = None


def get_engine() -> Engine:
    """Get or create the engine for the configured database URL."""
    global _engine
    if _engine is None:
        url = get_settings().database_url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
    return _engine


def get_session_local() -> sessionmaker:
    """Get the session factory bound to the current engine."""
    global _session_local
    if _session_local is None:
        _session_local = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_local


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = get_session_local()()
    try:
        yield db
    finally:
        db.close()


def dispose_engine() -> None:
    """Dispose the engine so the next call picks up fresh settings."""
    global _engine, _session_local
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_local = None


def verify_database_connection() -> bool:
    """Return True when a trivial query succeeds."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("Database connection check failed", data={"error": str(exc)})
        return False
