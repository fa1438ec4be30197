
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from oauth2_token_store.config import settings
from oauth2_token_store.db.base import Base


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create the async engine; SQLite (local runs, tests) shares one in-process connection."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo, poolclass=StaticPool)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    from oauth2_token_store import models  # noqa: F401 - register tables

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
