"""Async engine and request-scoped sessions for the gate's store."""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import settings

logger = structlog.get_logger()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

# Decision results are read back after commit (score ids, case ids)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; uncommitted work is rolled back on error."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the gate-owned tables when ``DB_CREATE_TABLES`` is set.

    Core banking tables (accounts, transactions, payees, profiles) are
    created too in development so the gate can run against an empty database.
    """
    if not settings.db_create_tables:
        logger.info("database_schema_managed_externally")
        return

    from src.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", tables=len(Base.metadata.tables))


async def dispose_db() -> None:
    await engine.dispose()


async def check_db() -> bool:
    """Readiness check: can a connection run a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("database_check_failed", error_type=type(exc).__name__)
        return False
