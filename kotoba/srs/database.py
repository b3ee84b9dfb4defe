"""
Database - Engine, Sessions and Schema

Configuration and connection handling for the deck database.
Uses SQLAlchemy ORM; SQLite by default, any SQLAlchemy URL via DATABASE_URL.

Every store function elsewhere takes an open Session as its first
argument; this module only decides where that Session comes from.
"""

from __future__ import annotations
import logging
import os
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from kotoba.srs.exceptions import DeckError, PersistenceError
from kotoba.srs.models import Base

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///logs/kotoba.db"
PROD_DB_NAME = "kotoba"
TEST_DB_NAME = "test_kotoba"


# ---- Configuration ----

def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    Uses TEST_MODE to switch to the test database by replacing the
    production database name in the URL.

    Returns:
        SQLAlchemy connection string
    """
    url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    if is_test_mode():
        return url.replace(PROD_DB_NAME, TEST_DB_NAME)
    return url


def _echo_enabled() -> bool:
    return os.getenv("KOTOBA_SQL_ECHO", "false").lower() == "true"


# ---- Engine / sessions ----

def create_deck_engine(url: str) -> Engine:
    """
    Build an engine for the given URL.

    SQLite file databases get their parent directory created; server
    databases get a small connection pool.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=_echo_enabled(),
        )

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=_echo_enabled(),
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine for the configured DATABASE_URL."""
    url = get_database_url()
    logger.info("Connecting to deck database: %s", make_url(url).render_as_string(hide_password=True))
    return create_deck_engine(url)


@lru_cache(maxsize=8)
def get_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine (one per engine)."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_session(engine: Optional[Engine] = None) -> Session:
    """
    Get a SQLAlchemy session for database operations.

    Caller is responsible for closing it (or use session_scope()).
    """
    return get_session_factory(engine or get_engine())()


@contextmanager
def session_scope(engine: Optional[Engine] = None) -> Iterator[Session]:
    """Yield a session and always close it afterwards."""
    session = get_session(engine)
    try:
        yield session
    finally:
        session.close()


@contextmanager
def atomic(db: Session, action: str) -> Iterator[Session]:
    """
    Run a block as one transaction.

    Commits on success. On any error the transaction is rolled back;
    SQLAlchemy errors are re-raised as PersistenceError.
    """
    try:
        yield db
        db.commit()
    except DeckError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s failed: %s", action, exc)
        raise PersistenceError(f"{action} failed: {exc}") from exc


@contextmanager
def reading(db: Session, action: str) -> Iterator[Session]:
    """
    Run a read-only block.

    Same error handling as atomic() without the commit: SQLAlchemy
    errors roll back the session and surface as PersistenceError.
    """
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s failed: %s", action, exc)
        raise PersistenceError(f"{action} failed: {exc}") from exc


# ---- Schema ----

def init_db(engine: Optional[Engine] = None) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times.
    """
    try:
        Base.metadata.create_all(engine or get_engine())
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Schema initialization failed: {exc}") from exc


def reset_db(engine: Optional[Engine] = None) -> None:
    """
    DANGEROUS: Drop all tables and recreate them.

    All cards and review history will be lost!
    """
    engine = engine or get_engine()
    try:
        Base.metadata.drop_all(engine)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Dropping tables failed: {exc}") from exc
    logger.warning("All deck tables dropped")
    init_db(engine)
