"""Engine and session handling for the ledger database."""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import settings


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # The CLI and engine threads share one file
        return {"echo": False, "connect_args": {"check_same_thread": False}}
    return {"echo": False, "pool_pre_ping": True, "pool_recycle": 3600}


def configure_database(url: Optional[str] = None) -> None:
    """Drop the cached engine; with ``url`` the next one points there instead."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
    if url:
        settings.database.url_override = url


def get_database_engine() -> Engine:
    global _engine
    if _engine is None:
        url = settings.database.url
        _engine = create_engine(url, **_engine_options(url))
    return _engine


def get_session_local() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_database_engine())
    return _SessionLocal


@contextmanager
def session_scope(session_local: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """One unit of work: commit when the block succeeds, roll back when it raises."""
    session = (session_local or get_session_local())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create the match, innings and ledger tables."""
    from .models import Base
    Base.metadata.create_all(bind=get_database_engine())


def drop_tables() -> None:
    """Drop every scoring table, ledger included."""
    from .models import Base
    Base.metadata.drop_all(bind=get_database_engine())
