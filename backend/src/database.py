"""Database engine and session factory configuration.

Repositories receive a session factory and open one short-lived session per
operation, so matcher and registrar instances can be shared across threads.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from config import get_settings


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create a SQLAlchemy engine.

    Pool settings only apply to PostgreSQL (not SQLite).

    Args:
        database_url: Connection string (defaults to settings.DATABASE_URL)
        echo: Enable SQL echo (defaults to settings.DATABASE_ECHO)

    Returns:
        Engine: Configured engine
    """
    settings = get_settings()
    url = database_url or settings.DATABASE_URL

    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": settings.DATABASE_ECHO if echo is None else echo,
    }

    if not url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(url, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to an engine.

    expire_on_commit is disabled so entities returned by repositories stay
    readable after their session is closed.
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for a transactional unit of work.

    Usage:
        with session_scope(factory) as session:
            session.add(merchant)

    Automatically commits on success, rolls back on exception.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
