from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lending_uploads.core.config import get_settings
from lending_uploads.db.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.db_url,
            echo=settings.debug,
            future=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            expire_on_commit=False,
        )
    return _session_factory


def reset_session_factory() -> None:
    """Reset session factory; useful for tests when settings change."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None


async def create_tables() -> None:
    import lending_uploads.models  # noqa: F401  registers mappers

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
