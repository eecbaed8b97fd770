from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from armory.core.config import Settings
from armory.core.context import AppContext, get_context


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.get_async_database_url(),
        echo=settings.app_env == "development",
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=0,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(context: AppContext = Depends(get_context)):
    async with context.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """Create the weapons table if it is missing (idempotent)."""
    async with engine.begin() as conn:
        from armory.models import weapon  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
