"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations against PostgreSQL, with an in-memory
SQLite fallback when no DATABASE_URL is configured.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
from urllib.parse import urlparse
import logging

from gallery_api.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def build_engine(url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL gets a connection pool; in-memory SQLite shares a single
    connection so every session sees the same database.
    """
    engine_args = {
        "echo": False,  # Set to True for SQL query logging in development
    }

    if url.startswith("postgresql"):
        engine_args.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
            "pool_recycle": 3600,
            "connect_args": {
                "server_settings": {
                    "application_name": "sliding-gallery-api"
                }
            }
        })
    elif url.startswith("sqlite") and ":memory:" in url:
        engine_args.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        })

    return create_async_engine(url, **engine_args)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL or SQLITE_MEMORY_URL)

# Create async session factory
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Provides async database session with automatic commit/rollback.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            pass
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}")
            raise
        finally:
            await session.close()


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    parsed = urlparse(url)

    if url.startswith("sqlite"):
        return True, f"SQLite database: {parsed.path or ':memory:'}"

    if not url.startswith(("postgresql://", "postgresql+asyncpg://")):
        return False, f"Invalid database URL scheme. Expected postgresql:// or postgresql+asyncpg://, got: {parsed.scheme}"

    if not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"

    return True, f"URL format valid. Hostname: {parsed.hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}"


async def create_tables(bind: AsyncEngine) -> None:
    """Create all tables directly. Only used for SQLite; PostgreSQL goes through Alembic."""
    # Models must be imported so they are registered on Base.metadata
    from gallery_api import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    """
    Initialize database connection.
    Used on startup to verify the connection, and to create the schema
    when running on the SQLite fallback.
    """
    url = settings.DATABASE_URL or SQLITE_MEMORY_URL

    is_valid, diagnostic = _validate_database_url(url)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    if url.startswith("sqlite"):
        await create_tables(engine)

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
    except Exception as e:
        logger.error(
            f"Database connection failed ({type(e).__name__}): {str(e)}\n"
            f"Diagnostic: {diagnostic}"
        )
        raise


async def close_db():
    """
    Close database connections.
    Used on shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")
