from contextlib import contextmanager
from typing import Generator, Iterator
import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

# DATABASE_URL defaults to a local SQLite file at ./data.db (relative to the working directory).
# Override via the DATABASE_URL environment variable for staging/production.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data.db")


def build_engine(url: str) -> Engine:
    """
    Build an engine with backend-specific settings.

    - SQLite (dev/tests): allow cross-thread access and turn on foreign key enforcement.
    - Server DBs (MySQL/Postgres): pool with pre-ping and periodic recycling.
    """
    if url.startswith("sqlite"):
        eng = create_engine(url, connect_args={"check_same_thread": False})

        @event.listens_for(eng, "connect")
        def _sqlite_fk_pragma(dbapi_conn, _record) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return eng
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=280,  # recycle connections periodically to prevent 'MySQL server has gone away'
        pool_size=10,
        max_overflow=20,
    )


engine = build_engine(DATABASE_URL)

# Session factory: one session per request; autocommit and autoflush disabled for explicit transaction control
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models declared via SQLAlchemy's declarative API
Base = declarative_base()


def get_db() -> Generator:
    """
    FastAPI dependency.

    Yields a database session for the lifetime of the request and guarantees it
    is closed afterwards, even if an exception is raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Unit of work over an existing session: commit when the block exits cleanly,
    roll back on every exception (including domain errors raised mid-way) and re-raise.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
