"""Async database engine and session factory.

Two backings share every query in the package: an embedded SQLite file
(``sqlite+aiosqlite``) and a networked PostgreSQL server (``postgresql+asyncpg``).
Only the engine options differ between them.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def engine_options(url: str, *, production: bool = False) -> dict[str, Any]:
    """Backend-specific keyword arguments for ``create_async_engine``."""
    if url.startswith("postgresql"):
        options: dict[str, Any] = {"pool_pre_ping": True}
        if production:
            # Managed Postgres hosts terminate TLS with self-signed certs.
            options["connect_args"] = {"ssl": "require"}
        return options
    return {}


def build_engine(url: str | None = None, *, echo: bool | None = None) -> AsyncEngine:
    url = url or settings.async_database_url
    eng = create_async_engine(
        url,
        echo=settings.echo_sql if echo is None else echo,
        **engine_options(url, production=settings.is_production),
    )
    if eng.dialect.name == "sqlite":
        event.listen(eng.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return eng


def build_session_factory(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)


async def init_models(eng: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    from .models import Base

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine()
async_session_factory = build_session_factory(engine)


async def get_db(request: Request):
    """FastAPI dependency that yields an async session from the app's factory."""
    async with request.app.state.session_factory() as session:
        yield session
