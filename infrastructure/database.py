"""
Database engine and session management
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url

from core.config import settings
from infrastructure.models import Base


def _build_async_url(database_url: str) -> str:
    """Make sure the URL uses an async driver"""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"Unsupported database driver: {drivername}. Use an async driver in DATABASE__URL")

    return url.set(drivername=driver_map[drivername]).render_as_string(hide_password=False)


def build_engine(database_url: str | None = None, **engine_kwargs) -> AsyncEngine:
    return create_async_engine(
        _build_async_url(database_url or settings.database.url),
        echo=settings.database.echo,
        future=True,
        **engine_kwargs,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, expire_on_commit=False)


engine = build_engine()

AsyncSessionLocal = build_session_factory(engine)


async def create_tables(bind: AsyncEngine | None = None):
    """Create all ledger tables"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

