"""
Async engine, session factory and the storage error boundary.

Workflow transitions own their commits; get_db only guarantees that a
request which fails mid-transition leaves nothing half-written behind.
"""

import functools
from typing import AsyncGenerator

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from event_registration.core.config import get_settings
from event_registration.core.exceptions import StorageUnavailable
from event_registration.core.logging import get_logger
from event_registration.db.base import Base

logger = get_logger(__name__)
settings = get_settings()


def _engine_options(url: str) -> dict:
    # SQLite picks its own pool; sizing options only apply to server databases
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables directly (local runs); deployments use alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_ready")


def _is_transient(exc: DBAPIError) -> bool:
    if exc.connection_invalidated:
        return True
    message = str(exc.orig).lower()
    return "deadlock" in message or "could not serialize" in message


def translate_storage_errors(operation: str):
    """
    Turn connectivity failures from the database into StorageUnavailable.

    Constraint violations pass through untouched so callers can map them
    to domain errors.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (OperationalError, InterfaceError, PoolTimeoutError, OSError) as e:
                logger.error("storage_unavailable", operation=operation, error=str(e))
                raise StorageUnavailable(operation, str(e)) from e
            except DBAPIError as e:
                if not _is_transient(e):
                    raise
                logger.error("storage_unavailable", operation=operation, error=str(e))
                raise StorageUnavailable(operation, str(e)) from e

        return wrapper

    return decorator
