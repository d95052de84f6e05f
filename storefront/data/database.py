"""
Database connection and session management.
Uses SQLAlchemy for Postgres (or SQLite) connections.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
import os

from storefront.utils.logger import get_logger

logger = get_logger("data.database")

# Base class for all our database models
Base = declarative_base()


def make_engine(database_url: str = None) -> Engine:
    """
    Create an engine for `database_url` (defaults to DATABASE_URL).

    Supabase transaction/session poolers manage connections themselves, so
    Postgres engines use NullPool. In-memory SQLite needs a single shared
    connection (StaticPool) or every session would see an empty database.
    """
    url = database_url or os.getenv("DATABASE_URL") or ""
    if not url:
        raise RuntimeError("DATABASE_URL not set, cannot create SQL store")
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, poolclass=NullPool)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
