"""
Database engine and session management.

Scrape history and crawl targets live in PostgreSQL (asyncpg) in
deployment; tests and local runs may point ``DATABASE_URL`` at
``sqlite+aiosqlite``. Only the Postgres dialect gets a connection pool
and server settings.
"""

from collections.abc import AsyncGenerator
from typing import Any

import structlog
from fastapi import HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from dpp_graph.core.config import settings
from dpp_graph.core.exceptions import DatabaseError, DPPGraphError

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


def _engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=3600,
            connect_args={
                "command_timeout": 60,
                "server_settings": {
                    "application_name": settings.app_name.lower().replace(" ", "_"),
                    "jit": "off",
                },
            },
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))
logger.info("Database engine created", dialect=engine.dialect.name)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a session.

    Connection failures become 503s; other SQLAlchemy errors are wrapped in
    ``DatabaseError``. Application errors roll the session back and pass
    through to the global handlers.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except OperationalError as e:
            logger.error("Database unavailable", error=str(e))
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database connection failed. Please try again later.",
            ) from e
        except SQLAlchemyError as e:
            logger.error("Database error", error=str(e))
            await session.rollback()
            raise DatabaseError(f"Database operation failed: {e}", original_error=e) from e
        except (DPPGraphError, HTTPException):
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables that do not exist yet.

    Several API workers starting at once may race on CREATE TYPE; the
    losing worker sees a duplicate ``pg_type`` key and the tables exist.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, checkfirst=True))
        logger.info("Database tables initialized", tables=sorted(Base.metadata.tables))
    except SQLAlchemyError as e:
        error_str = str(e)
        if "pg_type_typname_nsp_index" in error_str:
            logger.info("Database tables already created by another worker")
        else:
            logger.error("Failed to initialize database", error=error_str)
            raise


async def close_db() -> None:
    await engine.dispose()


async def check_database_health() -> bool:
    """True when a trivial query succeeds."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database health check failed", error=str(e))
        return False
    return True
