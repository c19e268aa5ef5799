"""Session factory and transactional context manager."""
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from docengine.db.config import DBConfig
from docengine.db.engine import create_engine_from_config

# Module-level engine and session factory, set by init_db()
_engine: Engine | None = None
SessionLocal: sessionmaker | None = None


def init_db(cfg: DBConfig | None = None) -> None:
    """Initialize engine and session factory. Call once at app startup."""
    global _engine, SessionLocal
    cfg = cfg or DBConfig()
    if _engine is not None:
        _engine.dispose()
    _engine = create_engine_from_config(cfg)
    SessionLocal = sessionmaker(
        bind=_engine,
        autoflush=True,
        expire_on_commit=False,
        autocommit=False,
        autobegin=True,
    )


def get_engine() -> Engine | None:
    return _engine


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """One unit of work: commit on success, rollback + re-raise on exception."""
    if SessionLocal is None:
        init_db()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
