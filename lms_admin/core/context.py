from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from lms_admin.core.cache import CacheClient
from lms_admin.core.config import Settings
from lms_admin.db.session import create_engine, create_sessionmaker


@dataclass
class AppContext:
    """Process-wide resources, created in the app lifespan and kept on app.state.context."""

    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker
    cache: Optional[CacheClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        engine = create_engine(settings)
        return cls(
            settings=settings,
            engine=engine,
            sessionmaker=create_sessionmaker(engine),
            cache=CacheClient.from_settings(settings),
        )

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()
        await self.engine.dispose()


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_cache(request: Request) -> Optional[CacheClient]:
    return request.app.state.context.cache
