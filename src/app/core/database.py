"""
Database Configuration

Async SQLAlchemy engine, session factory and the FastAPI session dependency.
Repositories commit their own writes; the dependency only guarantees that a
failed request leaves no half-finished transaction behind.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_recycle=3600,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session per request.

    Usage in FastAPI:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def _import_models() -> None:
    """Register every model on Base.metadata."""
    from app.modules.auth import models as auth_models  # noqa: F401
    from app.modules.capacity import models as capacity_models  # noqa: F401
    from app.modules.enrollment import models as enrollment_models  # noqa: F401
    from app.modules.members import models as members_models  # noqa: F401


async def init_db() -> None:
    """
    Verify the database connection on startup.

    When DATABASE_AUTO_CREATE is enabled the schema is created directly
    from the models (local development only; use Alembic elsewhere).
    """
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

        if settings.database_auto_create:
            _import_models()
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema created from models")


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()
