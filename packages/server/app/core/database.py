"""
Database connection and session management.

Every unit of work (one request, one owner of an archive pass) runs in one
session whose transaction commits on success and rolls back on any error.
"""

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine; SQLite URLs are used by tests and local runs."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_async_engine(database_url, echo=echo, future=True, connect_args=connect_args)


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


def session_scope(factory: sessionmaker) -> SessionScope:
    """Return a context-manager factory yielding one transactional session."""

    @asynccontextmanager
    async def scope():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return scope


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_factory = build_session_factory(engine)

# Context manager for use outside of the FastAPI request lifecycle
get_session_context: SessionScope = session_scope(async_session_factory)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables (development and tests only; use migrations in production)."""
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with get_session_context() as session:
        yield session
