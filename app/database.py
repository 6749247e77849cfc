"""Async engine, session factory and the ``get_db`` request dependency.

The API shares one pooled engine. Celery tasks build their own engine per
run through ``build_engine`` (see ``app.tasks.db``).
"""

import os
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def resolve_database_url() -> str:
    """Pick the connection URL; test runs prefer ``TEST_DATABASE_URL``."""
    if os.getenv("TESTING") == "true":
        url = os.getenv("TEST_DATABASE_URL") or settings.test_database_url or settings.database_url
    else:
        url = settings.database_url

    url = (url or "").strip()
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not configured "
            "(e.g. DATABASE_URL=postgresql+asyncpg://<user>:<pass>@<host>/<db>)"
        )
    return url


DB_URL = resolve_database_url()


def build_engine(url: str = DB_URL, **kwargs) -> AsyncEngine:
    # SQLite has no connection pool to size
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", settings.db_pool_size)
        kwargs.setdefault("max_overflow", settings.db_max_overflow)
    return create_async_engine(url, echo=settings.debug, **kwargs)


engine = build_engine()

AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
