"""
Async SQLAlchemy engine and session factory for the profile store.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ..utils.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the engine and hands out short-lived sessions, one per store operation."""

    def __init__(self, url: str, echo: bool = False, pool_size: int = 10):
        self.url = url
        engine_kwargs: dict[str, object] = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs["pool_size"] = pool_size
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self._sessionmaker = async_sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    @property
    def backend(self) -> str:
        return make_url(self.url).get_backend_name()

    async def initialize(self) -> None:
        """Create the tables if they do not exist yet."""
        # Import so the tables are registered on Base.metadata
        from . import tables  # noqa: F401

        url = make_url(self.url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Profile store initialized", extra={"backend": self.backend})

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._sessionmaker() as session:
            yield session

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Profile store connection closed")
