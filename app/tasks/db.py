"""Database sessions for Celery tasks.

Each task invocation runs under its own ``asyncio.run`` event loop, so it
gets its own engine; pooled connections cannot cross event loops.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Import all models to ensure they're registered before creating session
import models  # noqa: F401
from app.database import DB_URL, build_engine


@asynccontextmanager
async def task_session(url: str = DB_URL) -> AsyncIterator[AsyncSession]:
    """Yield a session on a short-lived engine and dispose of it afterwards."""
    engine = build_engine(url)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_maker() as session:
            yield session
    finally:
        await engine.dispose()
