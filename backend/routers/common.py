"""
Warehouse scoping shared by the inventory, transfer and report routers.

Reads accept a warehouse id or the literal `all`; when the query parameter is
omitted the caller's stored selection applies. Writes need one concrete
warehouse.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import Warehouse as WarehouseModel
from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.movement import InventoryMovement as InventoryMovementModel
from db.users import User

ALL_WAREHOUSES = "all"


def _parse_warehouse_param(value: Optional[str]) -> Optional[object]:
    """None (not given), ALL_WAREHOUSES, or a UUID."""
    if value is None:
        return None
    v = value.strip()
    if not v:
        return None
    if v.lower() == ALL_WAREHOUSES:
        return ALL_WAREHOUSES
    try:
        return UUID(v)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid warehouse_id")


async def _get_warehouse(db: AsyncSession, warehouse_id: UUID) -> WarehouseModel:
    res = await db.execute(select(WarehouseModel).where(WarehouseModel.id == warehouse_id))
    wh = res.scalar_one_or_none()
    if not wh:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Warehouse not found")
    return wh


async def resolve_read_scope(db: AsyncSession, user: User, warehouse_id: Optional[str]) -> Optional[UUID]:
    """
    Resolve the warehouse a read applies to.

    Returns the warehouse id, or None for every warehouse.
    """
    parsed = _parse_warehouse_param(warehouse_id)
    if parsed is None:
        if user.select_all_warehouses:
            return None
        if user.selected_warehouse_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No warehouse selected")
        parsed = user.selected_warehouse_id
    if parsed == ALL_WAREHOUSES:
        return None
    wh = await _get_warehouse(db, parsed)
    return wh.id


async def resolve_write_warehouse(db: AsyncSession, user: User, warehouse_id: Optional[str]) -> WarehouseModel:
    parsed = _parse_warehouse_param(warehouse_id)
    if parsed is None:
        if user.select_all_warehouses:
            parsed = ALL_WAREHOUSES
        elif user.selected_warehouse_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No warehouse selected")
        else:
            parsed = user.selected_warehouse_id
    if parsed == ALL_WAREHOUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Select a specific warehouse; 'all' is read-only",
        )
    return await _get_warehouse(db, parsed)


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


async def fetch_items(
    db: AsyncSession,
    warehouse_id: Optional[UUID],
    q: Optional[str] = None,
) -> List[Tuple[InventoryItemModel, str]]:
    """Items in scope ordered by name, paired with their warehouse name."""
    stmt = select(InventoryItemModel, WarehouseModel.name).join(
        WarehouseModel, InventoryItemModel.warehouse_id == WarehouseModel.id
    )
    if warehouse_id is not None:
        stmt = stmt.where(InventoryItemModel.warehouse_id == warehouse_id)
    if q and q.strip():
        qq = f"%{q.strip().lower()}%"
        stmt = stmt.where(
            or_(func.lower(InventoryItemModel.code).like(qq), func.lower(InventoryItemModel.name).like(qq))
        )
    stmt = stmt.order_by(func.lower(InventoryItemModel.name).asc(), InventoryItemModel.code.asc())
    res = await db.execute(stmt)
    return [(it, wh_name) for (it, wh_name) in res.all()]


async def fetch_movements(
    db: AsyncSession,
    warehouse_id: Optional[UUID],
    *,
    item_id: Optional[UUID] = None,
    movement_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[InventoryMovementModel]:
    """Movements in scope, newest first."""
    stmt = select(InventoryMovementModel)
    if warehouse_id is not None:
        stmt = stmt.where(InventoryMovementModel.warehouse_id == warehouse_id)
    if item_id is not None:
        stmt = stmt.where(InventoryMovementModel.item_id == item_id)
    if movement_type:
        stmt = stmt.where(InventoryMovementModel.movement_type == movement_type)
    if date_from:
        stmt = stmt.where(InventoryMovementModel.created_at >= day_start(date_from))
    if date_to:
        end_excl = day_start(date_to) + timedelta(days=1)
        stmt = stmt.where(InventoryMovementModel.created_at < end_excl)
    stmt = stmt.order_by(InventoryMovementModel.created_at.desc(), InventoryMovementModel.id.desc())
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())
