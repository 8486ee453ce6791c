from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from tutorcenter.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Per-backend engine arguments.

    Postgres (asyncpg) gets a pinged, recycled pool. SQLite gets a busy timeout so that
    concurrent transitions queue on the file lock instead of failing with "database is locked".
    """
    options: Dict[str, Any] = {"echo": settings.db_echo}
    if make_url(database_url).get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": settings.db_busy_timeout_seconds}
    else:
        options["pool_pre_ping"] = True
        options["pool_recycle"] = settings.db_pool_recycle_seconds
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# expire_on_commit=False: services return response models built from rows after commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
