from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker


def normalize_url(store_url: str) -> str:
    """Accept either a SQLAlchemy URL or a bare SQLite file path."""
    if "://" in store_url:
        return store_url
    return f"sqlite:///{store_url}"


def sqlite_file_path(store_url: str) -> Optional[Path]:
    """Path of the database file behind a SQLite URL, None for anything else."""
    url = make_url(normalize_url(store_url))
    if url.get_backend_name() != "sqlite":
        return None
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return None
    return Path(database)


def get_engine(store_url: str):
    return create_engine(normalize_url(store_url), future=True)


def get_session(store_url: str) -> Session:
    """Get a SQLAlchemy session (caller must close it)."""
    engine = get_engine(store_url)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)()


@contextmanager
def session_context(store_url: str) -> Generator[Session, None, None]:
    """
    Context manager for read sessions against the Stream tables.

    Rolls back on error and always closes the session.

    Usage:
        with session_context(store_url) as session:
            records = query_records(session, args)
    """
    session = get_session(store_url)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
