"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations with PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from fastapi import HTTPException, Request
from urllib.parse import urlparse
import asyncio
import logging
import socket

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()


def create_engine_from_url(database_url: str) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    Connection pooling settings only apply to PostgreSQL (not SQLite).
    """
    engine_args = {
        "echo": False,  # Set to True for SQL query logging in development
    }

    if database_url.startswith("postgresql"):
        engine_args.update({
            "pool_size": 10,  # Number of connections to maintain in pool
            "max_overflow": 20,  # Additional connections allowed beyond pool_size
            "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "connect_args": {
                "server_settings": {
                    "application_name": "pfp-gallery-backend"
                }
            }
        })

    return create_async_engine(database_url, **engine_args)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create an async session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Provides async database session with automatic commit/rollback.

    The session factory is created by create_app() and stored on app.state.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            # Use db session here
            pass
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except HTTPException:
            # Already logged and mapped by the handler
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
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

    try:
        parsed = urlparse(url)

        if url.startswith("sqlite+aiosqlite://"):
            return True, f"URL format valid. SQLite database: {parsed.path or ':memory:'}"

        if not url.startswith(("postgresql://", "postgresql+asyncpg://")):
            return False, (
                "Invalid database URL scheme. Expected postgresql+asyncpg:// "
                f"or sqlite+aiosqlite://, got: {parsed.scheme}"
            )

        hostname = parsed.hostname
        if not hostname:
            return False, "No hostname found in DATABASE_URL"

        try:
            socket.getaddrinfo(hostname, None)
            dns_status = "DNS resolution successful"
        except socket.gaierror as e:
            dns_status = f"DNS resolution failed: {str(e)}. This may indicate network connectivity issues or incorrect hostname."

        return True, f"URL format valid. Hostname: {hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}. {dns_status}"

    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"


async def init_db(engine: AsyncEngine, database_url: str):
    """
    Initialize database connection and create missing tables.
    Used by the startup event to verify the connection.
    """
    # Host lookup for PostgreSQL URLs is blocking, so it runs off the event loop
    is_valid, diagnostic = await asyncio.to_thread(_validate_database_url, database_url)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    # Register models on Base.metadata before create_all
    from pfp_gallery import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database connection initialized successfully")
    except Exception as e:
        error_msg = str(e)
        error_type = type(e).__name__

        if "connection refused" in error_msg.lower() or "timeout" in error_msg.lower():
            logger.error(
                f"Database connection failed - Connection refused/timeout: {error_msg}\n"
                f"This usually means the database server is not accessible "
                f"or the port is incorrect.\n"
                f"Diagnostic: {diagnostic}"
            )
        elif "authentication failed" in error_msg.lower() or "password" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Check the username and password in DATABASE_URL.\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({error_type}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db(engine: AsyncEngine):
    """
    Close database connections.
    Used by the shutdown event.
    """
    await engine.dispose()
    logger.info("Database connections closed")
