"""
Notekeeper Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine construction, session factory, and the
       FastAPI session dependency.
Why:   Centralizes all database connection logic in one place.
How:   create_app() builds one engine + session factory per application and
       stores them on app.state; get_db_session() hands out one session per
       request and rolls back on error.

Connection Pooling Strategy (PostgreSQL):
    pool_size / max_overflow from settings
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    SQLite (local development and tests) gets no pool tuning; an in-memory
    database uses a StaticPool so every session sees the same connection.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from notekeeper.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object that Alembic reads for migrations.
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Creating the engine does not open a connection; the first query does.
    """
    echo = settings.log_level == "DEBUG"

    if settings.is_sqlite:
        if ":memory:" in settings.database_url or settings.database_url.endswith("://"):
            return create_async_engine(
                settings.database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=echo,
            )
        return create_async_engine(settings.database_url, echo=echo)

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: attributes stay readable after commit, so the
    # service can serialize a note it just wrote without another query
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """
    Create all tables known to Base.metadata.

    Used when DB_CREATE_ALL is set and by the test suite; production schemas
    are managed by Alembic.
    """
    # Model modules register themselves with Base on import
    from notekeeper.models import note  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory on app.state
        2. Yields it to the route handler
        3. On error: rolls back the transaction
        4. Always: closes the session (returns connection to pool)

    Services commit their own writes; a session that reaches the end of
    the request with nothing pending is simply closed.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine(engine: AsyncEngine) -> None:
    """Gracefully closes all connections in the pool (called at shutdown)."""
    await engine.dispose()
