from typing import AsyncGenerator
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from cohort_scheduler.core.config import settings
from cohort_scheduler.models.base import Base


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine; pool sizing only applies to server databases."""
    options = {
        "echo": settings.DATABASE_ECHO,
        "pool_pre_ping": True,        # Connection health check
    }
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=10,             # Maximum number of connections in the pool
            max_overflow=5,
            pool_timeout=30,          # Seconds to wait before timeout on connection pool checkout
            pool_recycle=1800,        # Recycle connections after 30 minutes
        )
    return create_async_engine(database_url, **options)


# Database URL from settings
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

engine = build_engine(SQLALCHEMY_DATABASE_URL)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,    # Don't expire objects after commit
    autoflush=False            # Explicit flush management
)


# FastAPI dependency for database sessions
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async database session.
    Usage: db: AsyncSession = Depends(get_db)
    """
    session = AsyncSessionLocal()
    try:
        yield session
    except Exception:
        # Rollback on error
        await session.rollback()
        raise
    finally:
        # Always close the session
        await session.close()


# Context manager for background tasks and scripts
@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions outside of request context.
    Usage: async with get_db_context() as session:
    """
    session = AsyncSessionLocal()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db() -> None:
    """Create the directory tables (mentors, enrollment, super-mentors) for local development.

    Cohort schedule tables are created out-of-band when a cohort is set up.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections"""
    await engine.dispose()


# Import all models after Base is defined
# This ensures all models are registered with the metadata
import cohort_scheduler.models.mentor  # noqa: E402,F401
import cohort_scheduler.models.student  # noqa: E402,F401
import cohort_scheduler.models.super_mentor  # noqa: E402,F401
