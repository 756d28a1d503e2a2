from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from core.config import settings
from core.daily_reset import rebaseline_item, reset_daily_quantities
from core.log import get_logger
from db.database import get_async_session, Warehouse as WarehouseModel
from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.movement import InventoryMovement as InventoryMovementModel
from db.users import User
from routers.common import (
    day_start,
    fetch_items,
    fetch_movements,
    resolve_read_scope,
    resolve_write_warehouse,
)
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryMovementCreate,
    InventoryMovementOut,
    InventorySummary,
    MAX_QUANTITY,
    MovementResult,
    MovementType,
    UsageReport,
    UsageRow,
)

router = APIRouter()
logger = get_logger("inventory")


def _minor_from_price(price: Optional[float]) -> int:
    if price is None:
        return 0
    return int(round(float(price) * 100))


def name_key(name: Optional[str]) -> str:
    return (name or "").lower()


async def find_duplicate(
    db: AsyncSession,
    *,
    warehouse_id: UUID,
    code: Optional[str] = None,
    name: Optional[str] = None,
    exclude_id: Optional[UUID] = None,
) -> Optional[str]:
    """
    Return "Duplicate code" / "Duplicate name" when another item of the
    warehouse already uses that code, or that name ignoring case.
    """
    base = select(InventoryItemModel.id).where(InventoryItemModel.warehouse_id == warehouse_id)
    if exclude_id is not None:
        base = base.where(InventoryItemModel.id != exclude_id)
    if code is not None:
        res = await db.execute(base.where(InventoryItemModel.code == code).limit(1))
        if res.first():
            return "Duplicate code"
    if name is not None:
        # SQLite lower() only folds ASCII, so names are compared here
        res = await db.execute(base.with_only_columns(InventoryItemModel.name))
        key = name_key(name)
        if any(name_key(other) == key for (other,) in res.all()):
            return "Duplicate name"
    return None


def add_item_with_movement(
    db: AsyncSession,
    *,
    user: User,
    warehouse_id: UUID,
    code: str,
    name: str,
    quantity: int,
    price: float,
    entry_date: Optional[date] = None,
    description: Optional[str] = None,
) -> tuple[InventoryItemModel, InventoryMovementModel]:
    """Stage a new item and its CREATE movement on the session (no commit)."""
    quantity = int(quantity)
    item = InventoryItemModel(
        warehouse_id=warehouse_id,
        code=code,
        name=name,
        price_minor=_minor_from_price(price),
        quantity_available=quantity,
        quantity_initial_today=quantity,
        quantity_used_today=0,
        day_started_on=date.today(),
        created_by_user_id=user.id,
    )
    if entry_date is not None:
        item.created_at = day_start(entry_date)
    db.add(item)
    movement = InventoryMovementModel(
        warehouse_id=warehouse_id,
        item=item,
        item_code=code,
        item_name=name,
        movement_type="CREATE",
        quantity_before=0,
        quantity_change=quantity,
        quantity_after=quantity,
        description=description or f"Product created: {name}",
        created_by_user_id=user.id,
    )
    if entry_date is not None:
        movement.created_at = day_start(entry_date)
    db.add(movement)
    return item, movement


async def _get_item(db: AsyncSession, item_id: UUID, *, for_update: bool = False) -> InventoryItemModel:
    stmt = select(InventoryItemModel).where(InventoryItemModel.id == item_id)
    if for_update:
        stmt = stmt.with_for_update()
    res = await db.execute(stmt)
    it = res.scalar_one_or_none()
    if not it:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return it


async def _item_out(db: AsyncSession, it: InventoryItemModel) -> InventoryItemOut:
    res = await db.execute(select(WarehouseModel.name).where(WarehouseModel.id == it.warehouse_id))
    return InventoryItemOut(**it.to_schema(res.scalar_one_or_none()))


@router.get("/items", response_model=List[InventoryItemOut])
async def list_inventory_items(
    warehouse_id: Optional[str] = None,
    q: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List the items of the selected warehouse (or of all warehouses).

    The first listing of a new calendar day rebaselines the daily counters.
    """
    scope = await resolve_read_scope(db, user, warehouse_id)
    await reset_daily_quantities(db, warehouse_id=scope)
    rows = await fetch_items(db, scope, q)
    return [InventoryItemOut(**it.to_schema(wh_name)) for (it, wh_name) in rows]


@router.get("/items/{item_id}", response_model=InventoryItemOut)
async def get_inventory_item(
    item_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    it = await _get_item(db, item_id)
    if rebaseline_item(it):
        await db.commit()
    return await _item_out(db, it)


@router.post("/items", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    payload: InventoryItemCreate,
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    wh = await resolve_write_warehouse(db, user, warehouse_id)

    duplicate = await find_duplicate(db, warehouse_id=wh.id, code=payload.code, name=payload.name)
    if duplicate:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=duplicate)

    try:
        item, _movement = add_item_with_movement(
            db,
            user=user,
            warehouse_id=wh.id,
            code=payload.code,
            name=payload.name,
            quantity=payload.quantity,
            price=payload.price,
            entry_date=payload.entry_date,
        )
        await db.commit()
        await db.refresh(item)
    except Exception as e:
        await db.rollback()
        logger.exception("create_inventory_item failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create item: {e}")

    logger.info("Item %s (%s) created in warehouse %s", item.code, item.id, wh.id)
    return InventoryItemOut(**item.to_schema(wh.name))


@router.patch("/items/{item_id}", response_model=InventoryItemOut)
async def update_inventory_item(
    item_id: UUID,
    payload: InventoryItemUpdate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_item(db, item_id, for_update=True)
    rebased = rebaseline_item(model)
    data = payload.model_dump(exclude_unset=True)

    new_code = data.get("code")
    new_name = data.get("name")
    if new_code is not None and new_code == model.code:
        new_code = None
    if new_name is not None and new_name == model.name:
        new_name = None
    duplicate = await find_duplicate(
        db, warehouse_id=model.warehouse_id, code=new_code, name=new_name, exclude_id=model.id
    )
    if duplicate:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=duplicate)

    try:
        details_changed = False
        if new_code is not None:
            model.code = new_code
            details_changed = True
        if new_name is not None:
            model.name = new_name
            details_changed = True
        if data.get("price") is not None:
            price_minor = _minor_from_price(data["price"])
            if price_minor != model.price_minor:
                model.price_minor = price_minor
                details_changed = True

        before = int(model.quantity_available or 0)
        after = data.get("quantity_available")
        movement = None
        if after is not None and after != before:
            diff = after - before
            model.quantity_available = after
            if diff < 0:
                model.quantity_used_today = int(model.quantity_used_today or 0) - diff
            movement = InventoryMovementModel(
                warehouse_id=model.warehouse_id,
                item_id=model.id,
                item_code=model.code,
                item_name=model.name,
                movement_type="ADJUST",
                quantity_before=before,
                quantity_change=diff,
                quantity_after=after,
                description=f"Quantity adjusted from {before} to {after}",
                created_by_user_id=user.id,
            )
        elif details_changed:
            movement = InventoryMovementModel(
                warehouse_id=model.warehouse_id,
                item_id=model.id,
                item_code=model.code,
                item_name=model.name,
                movement_type="EDIT",
                quantity_before=before,
                quantity_change=0,
                quantity_after=before,
                description="Product details updated",
                created_by_user_id=user.id,
            )

        if movement is not None:
            db.add(movement)
        if movement is not None or rebased:
            await db.commit()
            await db.refresh(model)
    except Exception as e:
        await db.rollback()
        logger.exception("update_inventory_item failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to update item: {e}")

    return await _item_out(db, model)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory_item(
    item_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_item(db, item_id)
    try:
        await db.delete(model)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("delete_inventory_item failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to delete item: {e}")
    logger.info("Item %s (%s) deleted", model.code, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/items/{item_id}/movements", response_model=MovementResult, status_code=status.HTTP_201_CREATED)
async def create_movement(
    item_id: UUID,
    payload: InventoryMovementCreate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        # `current_active_user` may already have used this session (FastAPI dependency cache),
        # so rely on the autobegun transaction and commit/rollback explicitly.
        it = await _get_item(db, item_id, for_update=True)
        rebaseline_item(it)

        before = int(it.quantity_available or 0)
        qty = int(payload.quantity)
        if payload.movement_type == "EXIT":
            if qty > before:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Not enough stock available")
            after = before - qty
            change = -qty
            it.quantity_used_today = int(it.quantity_used_today or 0) + qty
            default_description = f"Exit of {qty} units"
        else:
            after = before + qty
            if after > MAX_QUANTITY:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Quantity exceeds the maximum allowed")
            change = qty
            default_description = f"Entry of {qty} units"
        it.quantity_available = after

        movement = InventoryMovementModel(
            warehouse_id=it.warehouse_id,
            item_id=it.id,
            item_code=it.code,
            item_name=it.name,
            movement_type=payload.movement_type,
            quantity_before=before,
            quantity_change=change,
            quantity_after=after,
            description=payload.description or default_description,
            created_by_user_id=user.id,
        )
        if payload.movement_date is not None:
            movement.created_at = day_start(payload.movement_date)
        db.add(movement)

        await db.commit()
        await db.refresh(it)
        await db.refresh(movement)
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("create_movement failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create movement: {e}")

    return MovementResult(
        item=await _item_out(db, it),
        movement=InventoryMovementOut(**movement.to_schema),
    )


@router.get("/items/{item_id}/movements", response_model=List[InventoryMovementOut])
async def list_item_movements(
    item_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    it = await _get_item(db, item_id)
    movements = await fetch_movements(db, it.warehouse_id, item_id=it.id)
    return [InventoryMovementOut(**mv.to_schema) for mv in movements]


@router.get("/movements", response_model=List[InventoryMovementOut])
async def list_movements(
    warehouse_id: Optional[str] = None,
    item_id: Optional[UUID] = None,
    movement_type: Optional[MovementType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(settings.movements_default_limit, ge=1, le=1000),
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    scope = await resolve_read_scope(db, user, warehouse_id)
    movements = await fetch_movements(
        db,
        scope,
        item_id=item_id,
        movement_type=movement_type,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    return [InventoryMovementOut(**mv.to_schema) for mv in movements]


@router.get("/usage", response_model=UsageReport)
async def usage_report(
    warehouse_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Units that left stock per product between two dates (inclusive)."""
    scope = await resolve_read_scope(db, user, warehouse_id)
    today = date.today()
    date_to = date_to or today
    date_from = date_from or today.replace(day=1)
    if date_from > date_to:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="date_from must be on or before date_to")

    movements = await fetch_movements(db, scope, movement_type="EXIT", date_from=date_from, date_to=date_to)
    by_item: dict = {}
    for mv in movements:
        used = max(0, int(mv.quantity_before or 0) - int(mv.quantity_after or 0))
        key = mv.item_id or (mv.item_code, mv.item_name)
        row = by_item.get(key)
        if row is None:
            row = by_item[key] = {
                "item_id": mv.item_id,
                "item_code": mv.item_code,
                "item_name": mv.item_name,
                "units_used": 0,
            }
        row["units_used"] += used

    rows = sorted(by_item.values(), key=lambda r: (-r["units_used"], (r["item_name"] or "").lower()))
    return UsageReport(
        date_from=date_from,
        date_to=date_to,
        rows=[UsageRow(**r) for r in rows],
        total_units=sum(r["units_used"] for r in rows),
    )


async def compute_summary(db: AsyncSession, warehouse_id: Optional[UUID]) -> dict:
    stmt = select(
        func.count(InventoryItemModel.id),
        func.coalesce(func.sum(InventoryItemModel.quantity_available), 0),
        func.coalesce(func.sum(InventoryItemModel.quantity_used_today), 0),
        func.coalesce(func.sum(InventoryItemModel.quantity_available * InventoryItemModel.price_minor), 0),
    )
    if warehouse_id is not None:
        stmt = stmt.where(InventoryItemModel.warehouse_id == warehouse_id)
    count, units, used, value_minor = (await db.execute(stmt)).one()
    return {
        "total_products": int(count or 0),
        "total_units": int(units or 0),
        "total_used_today": int(used or 0),
        "total_value": float(value_minor or 0) / 100.0,
    }


@router.get("/summary", response_model=InventorySummary)
async def inventory_summary(
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    scope = await resolve_read_scope(db, user, warehouse_id)
    await reset_daily_quantities(db, warehouse_id=scope)
    return InventorySummary(**(await compute_summary(db, scope)))


@router.post("/reset-daily")
async def reset_daily(
    warehouse_id: Optional[str] = None,
    force: bool = False,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    scope = await resolve_read_scope(db, user, warehouse_id)
    count = await reset_daily_quantities(db, warehouse_id=scope, force=force)
    return {"warehouse_id": scope, "reset": count}
