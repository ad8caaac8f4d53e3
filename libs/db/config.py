from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import Settings, get_settings


def create_engine_from_settings(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Build the async engine for the configured database.

    SQLite (used by tests and local tinkering) does not accept the pool
    sizing arguments, so they are only passed for server databases.
    """
    settings = settings or get_settings()
    engine_kwargs = {
        # echo=True for local dev to see SQL queries
        "echo": settings.DB_ECHO,
        "future": True,
    }
    if not settings.DATABASE_URL.startswith("sqlite"):
        engine_kwargs.update(
            pool_pre_ping=True,  # Test connections before using
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return create_async_engine(settings.DATABASE_URL, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


class Database:
    """
    Owns the engine and session factory for one running application.

    Created by the app lifespan on startup and disposed on shutdown, then
    handed to request handlers through ``get_async_db``.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.engine = create_engine_from_settings(settings)
        self.session_factory = create_session_factory(self.engine)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def dispose(self) -> None:
        await self.engine.dispose()
