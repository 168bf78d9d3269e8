from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from questionnaire_api.db.base_class import Base


def engine_options_for(url: str) -> Dict[str, Any]:
    """Engine keyword arguments suited to the driver in the URL"""
    if ":memory:" in url or url in ("sqlite://", "sqlite+aiosqlite://"):
        # An in-memory SQLite database only lives as long as its single connection
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


class Database:
    """
    Store handle owning the async engine and its session factory.

    Constructed once per application in the lifespan and released on shutdown.
    """

    def __init__(self, url: str, echo: bool = False, engine_options: Optional[Dict[str, Any]] = None):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            **(engine_options if engine_options is not None else engine_options_for(url)),
        )
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self) -> None:
        """Create tables for every registered document model"""
        # Register models on the metadata before creating tables
        from questionnaire_api.models import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Get database session dependency.
    """
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
