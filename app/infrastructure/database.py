"""Database configuration and session management."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import Settings, get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


settings = get_settings()

logger = logging.getLogger(__name__)


def _build_connect_args(settings: Settings) -> dict[str, object]:
    """Return driver arguments that keep every lookup bounded in time."""

    url = settings.database_url
    if url.startswith("sqlite"):
        # Lookups run on consumer worker threads, not the thread that opened the pool.
        return {"check_same_thread": False}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"}
    return {}


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine used for the subscription lookups."""

    connect_args = _build_connect_args(settings)
    options: dict[str, object] = {"pool_pre_ping": True, "connect_args": connect_args}
    if not settings.database_url.startswith("sqlite"):
        options["pool_timeout"] = settings.db_pool_timeout_seconds
    logger.debug("Creating database engine (driver args: %s)", sorted(connect_args))
    return create_engine(settings.database_url, **options)


engine = build_engine(settings)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def initialize_database() -> None:
    """Ensure all ORM models have corresponding database tables.

    The tables are owned by the project CRUD service; this is only used for
    local development and tests.
    """

    from app.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine, checkfirst=True)
