from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.log import get_logger
from db.database import Base, get_async_session

router = APIRouter()
logger = get_logger("health")

CHECKED_TABLES = ["users", "warehouses", "inventory_items", "inventory_movements", "companies"]


@router.get("")
async def health():
    return {"status": "ok"}


@router.get("/db")
async def health_db(db: AsyncSession = Depends(get_async_session)):
    """Probe each table with a one-row select."""
    tables = {}
    for name in CHECKED_TABLES:
        table = Base.metadata.tables[name]
        try:
            await db.execute(select(table).limit(1))
            tables[name] = {"ok": True, "error": None}
        except Exception as e:
            await db.rollback()
            logger.warning("Health check failed for table %s: %r", name, e)
            tables[name] = {"ok": False, "error": str(e)}
    return {"ok": all(t["ok"] for t in tables.values()), "tables": tables}
