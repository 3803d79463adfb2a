from typing import AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from lms_admin.core.config import Settings

# Logical schema names used in model __table_args__. The engine maps them to
# physical names through schema_translate_map.
LMS_SCHEMA = "lms"
ELEARNING_SCHEMA = "elearning"

Base = declarative_base()


def schema_map(settings: Settings) -> Dict[str, Optional[str]]:
    return {
        LMS_SCHEMA: settings.lms_schema,
        ELEARNING_SCHEMA: settings.elearning_schema,
    }


def create_engine(settings: Settings, **overrides) -> AsyncEngine:
    """Build the process-wide async engine.

    pool_pre_ping: check connection is alive before use.
    pool_recycle: discard connections after this many seconds to avoid stale connections.
    """
    kwargs = dict(
        echo=False,
        future=True,
        execution_options={"schema_translate_map": schema_map(settings)},
    )
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_pre_ping=True,
            pool_recycle=300,
        )
    kwargs.update(overrides)
    return create_async_engine(settings.database_url, **kwargs)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.context.sessionmaker() as session:
        yield session
