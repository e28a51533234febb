"""Database session management."""

from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import get_settings
from .models import Base


def create_db_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine for ``database_url`` (defaults to the configured URL)."""
    url = database_url or get_settings().database_url
    return create_engine(
        url,
        echo=False,  # Set to True for SQL debugging
        pool_pre_ping=True,
    )


def init_db(engine: Engine) -> None:
    """Create all tables."""
    Base.metadata.create_all(bind=engine)


def create_session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine)


@contextmanager
def session_scope(session_factory: Callable[[], Session]) -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
