from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.log import get_logger
from db.database import InventoryItem

logger = get_logger("daily_reset")


def needs_reset(day_started_on: Optional[date], today: Optional[date] = None) -> bool:
    today = today or date.today()
    return day_started_on is None or day_started_on != today


def rebaseline_item(item: InventoryItem, today: Optional[date] = None) -> bool:
    """Start a new day on one loaded item before its counters are read or changed. No commit."""
    today = today or date.today()
    if not needs_reset(item.day_started_on, today):
        return False
    item.quantity_initial_today = int(item.quantity_available or 0)
    item.quantity_used_today = 0
    item.day_started_on = today
    return True


async def reset_daily_quantities(
    db: AsyncSession,
    warehouse_id: Optional[UUID] = None,
    today: Optional[date] = None,
    force: bool = False,
) -> int:
    """
    Rebaseline the per-day counters of every stale item.

    An item is stale when its `day_started_on` is missing or is not `today`.
    Its `quantity_initial_today` becomes the current available quantity and
    `quantity_used_today` goes back to 0. Running it twice on the same day
    touches nothing the second time.

    `force=True` rebaselines every item in scope, stale or not (manual reset).

    `warehouse_id=None` covers every warehouse. Commits and returns the number
    of rows rebaselined.
    """
    today = today or date.today()
    stmt = (
        update(InventoryItem)
        .values(
            quantity_initial_today=InventoryItem.quantity_available,
            quantity_used_today=0,
            day_started_on=today,
        )
        .execution_options(synchronize_session=False)
    )
    if not force:
        stmt = stmt.where(or_(InventoryItem.day_started_on.is_(None), InventoryItem.day_started_on != today))
    if warehouse_id is not None:
        stmt = stmt.where(InventoryItem.warehouse_id == warehouse_id)

    res = await db.execute(stmt)
    await db.commit()
    count = int(res.rowcount or 0)
    if count:
        logger.info("Daily reset for %s: %d item(s) rebaselined", warehouse_id or "all warehouses", count)
    return count
