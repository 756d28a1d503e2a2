from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

DATABASE_URL = settings.database_url


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


engine = create_async_engine(DATABASE_URL, echo=settings.database_echo)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)

if engine.dialect.name == "sqlite":
    # SQLite ignores ON DELETE CASCADE / SET NULL unless enabled per connection
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


# Models register themselves on Base.metadata; re-exported for routers and scripts.
from .users import User  # noqa: E402
from .company import Company  # noqa: E402
from .warehouse import Warehouse  # noqa: E402
from .inventory.item import InventoryItem  # noqa: E402
from .inventory.movement import InventoryMovement  # noqa: E402

__all__ = [
    "Base",
    "engine",
    "async_session_maker",
    "create_db_and_tables",
    "get_async_session",
    "User",
    "Company",
    "Warehouse",
    "InventoryItem",
    "InventoryMovement",
]
