"""Engine and session factory construction for the ledger database."""

from __future__ import annotations

import logging

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from backend.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; PostgreSQL URLs should use the `postgresql+psycopg` driver."""
    return create_engine(database_url, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create all ledger tables directly from model metadata.

    Production databases are managed by the Alembic migration; this is for
    local runs and tests.
    """
    logger.info("Creating ledger schema on %s.", engine.url.render_as_string(hide_password=True))
    Base.metadata.create_all(engine)
