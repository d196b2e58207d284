"""
Async Database Session Management
SQLAlchemy 2.0 Async with connection pooling.

The Database object is built from Settings by the application factory and
stored on ``app.state``; nothing here is created at import time.
"""
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import Settings


class Database:
    """Owns the async engine and the session factory."""

    def __init__(self, settings: Settings):
        engine_options: dict = {
            "echo": settings.db_echo,
            "pool_pre_ping": True,
        }
        # SQLite engines use a non-queue pool that rejects sizing options
        if not settings.is_sqlite:
            engine_options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **engine_options)
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def init_models(self) -> None:
        """Create database tables."""
        from src.core.models import Base
        # Register telemetry tables on the shared metadata
        import src.modules.telemetry.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields an async database session.
    Use with FastAPI's Depends() for dependency injection.
    """
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
