from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from app.config import settings

logger = logging.getLogger(__name__)

# Process-wide engine shared by the profile and notification repositories
engine: Engine | None = None


def create_sync_engine(
    database_url: str,
    *,
    pool_min_size: int | None = None,
    pool_max_size: int | None = None,
) -> Engine:
    """Build a sync SQLAlchemy engine, accepting async-style URLs as well."""
    if not database_url:
        raise ValueError("DATABASE_URL is required to build a database engine.")
    sync_url, connect_args, drivername = _coerce_sync_database_url(make_url(database_url))
    pool_min = max(pool_min_size or settings.db_pool_min_size, 1)
    pool_max = max(pool_max_size or settings.db_pool_max_size, pool_min)
    is_sqlite = drivername.startswith("sqlite")
    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug and settings.log_level.upper() == "DEBUG",
        "connect_args": connect_args,
        "pool_pre_ping": not is_sqlite,
    }
    if not is_sqlite:
        engine_kwargs["pool_size"] = pool_min
        engine_kwargs["max_overflow"] = max(pool_max - pool_min, 0)
        engine_kwargs["pool_recycle"] = 300
    return create_engine(sync_url, **engine_kwargs)


def init_database(database_url: str | None = None) -> Engine | None:
    """Initialize the shared engine if DATABASE_URL is provided."""
    global engine  # noqa: PLW0603

    if engine is not None:
        return engine

    resolved_url = database_url or settings.database_url
    if not resolved_url:
        logger.info("No DATABASE_URL provided, running with in-memory stores")
        return None

    try:
        engine = create_sync_engine(resolved_url)
        if settings.db_auto_create_schema:
            # Registers the tables on SQLModel.metadata before create_all.
            from app.models import company_record, notification_record  # noqa: F401

            SQLModel.metadata.create_all(engine)
        logger.info("Database connection initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    return engine


def dispose_database() -> None:
    """Close the shared engine; the next init_database call rebuilds it."""
    global engine  # noqa: PLW0603

    if engine is not None:
        engine.dispose()
        engine = None


def check_database_health() -> bool:
    """Check if database is accessible."""
    if engine is None:
        return True  # No database configured, consider healthy

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False


def _coerce_sync_database_url(url: URL) -> tuple[str, dict[str, Any], str]:
    """Convert async connection strings into sync SQLAlchemy URLs."""
    drivername = url.drivername
    connect_args: dict[str, Any] = {}
    if drivername.endswith("+asyncpg"):
        drivername = drivername.replace("+asyncpg", "+psycopg2")
    elif drivername.endswith("+psycopg"):
        drivername = drivername.replace("+psycopg", "+psycopg2")
    elif drivername.endswith("+aiosqlite"):
        drivername = drivername.replace("+aiosqlite", "")
    sync_url = url.set(drivername=drivername)
    query = dict(sync_url.query) if sync_url.query else {}
    removed_ssl = query.pop("ssl", None) is not None
    sync_url = sync_url.set(query=query)

    if drivername.startswith("postgresql") and removed_ssl and "sslmode" not in query:
        connect_args["sslmode"] = "require"
    if drivername.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    return sync_url.render_as_string(hide_password=False), connect_args, drivername
