from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from core.log import get_logger
from db.database import (
    get_async_session,
    Company as CompanyModel,
    InventoryItem as InventoryItemModel,
    InventoryMovement as InventoryMovementModel,
    User as UserModel,
    Warehouse as WarehouseModel,
)
from db.users import User
from schemas.warehouses import (
    WarehouseCreate,
    WarehouseRead,
    WarehouseSelection,
    WarehouseSelectionRead,
    WarehouseUpdate,
)

router = APIRouter()
logger = get_logger("warehouses")


async def _get_warehouse(db: AsyncSession, warehouse_id: UUID) -> WarehouseModel:
    res = await db.execute(select(WarehouseModel).where(WarehouseModel.id == warehouse_id))
    m = res.scalar_one_or_none()
    if not m:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Warehouse not found")
    return m


async def _ensure_company(db: AsyncSession, company_id: Optional[UUID]) -> None:
    if company_id is None:
        return
    res = await db.execute(select(CompanyModel.id).where(CompanyModel.id == company_id))
    if not res.first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")


async def _selection_out(db: AsyncSession, user: User) -> WarehouseSelectionRead:
    if user.select_all_warehouses:
        return WarehouseSelectionRead(warehouse_id=None, all=True, warehouse=None)
    if user.selected_warehouse_id is None:
        return WarehouseSelectionRead()
    res = await db.execute(select(WarehouseModel).where(WarehouseModel.id == user.selected_warehouse_id))
    wh = res.scalar_one_or_none()
    if not wh:
        return WarehouseSelectionRead()
    return WarehouseSelectionRead(warehouse_id=wh.id, all=False, warehouse=WarehouseRead(**wh.to_schema))


@router.get("/", response_model=List[WarehouseRead])
async def list_warehouses(
    company_id: Optional[UUID] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    stmt = select(WarehouseModel)
    if company_id is not None:
        stmt = stmt.where(WarehouseModel.company_id == company_id)
    res = await db.execute(stmt.order_by(func.lower(WarehouseModel.name).asc()))
    return [WarehouseRead(**w.to_schema) for w in res.scalars().all()]


@router.get("/selected", response_model=WarehouseSelectionRead)
async def get_selected_warehouse(
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await _selection_out(db, user)


@router.put("/selected", response_model=WarehouseSelectionRead)
async def set_selected_warehouse(
    payload: WarehouseSelection,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Store the caller's selection: a warehouse id, "all", or null to clear it."""
    if payload.warehouse_id is None:
        user.selected_warehouse_id = None
        user.select_all_warehouses = False
    elif payload.warehouse_id == "all":
        user.selected_warehouse_id = None
        user.select_all_warehouses = True
    else:
        wh = await _get_warehouse(db, payload.warehouse_id)
        user.selected_warehouse_id = wh.id
        user.select_all_warehouses = False

    db.add(user)
    await db.commit()
    return await _selection_out(db, user)


@router.get("/{warehouse_id}", response_model=WarehouseRead)
async def get_warehouse(
    warehouse_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    m = await _get_warehouse(db, warehouse_id)
    return WarehouseRead(**m.to_schema)


@router.post("/", response_model=WarehouseRead, status_code=status.HTTP_201_CREATED)
async def create_warehouse(
    payload: WarehouseCreate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    await _ensure_company(db, payload.company_id)

    m = WarehouseModel(
        name=payload.name,
        location=payload.location,
        manager=payload.manager,
        phone=payload.phone,
        company_id=payload.company_id,
        created_by_user_id=user.id,
    )
    db.add(m)
    await db.flush()

    # A user's first warehouse becomes their working warehouse
    if user.selected_warehouse_id is None and not user.select_all_warehouses:
        user.selected_warehouse_id = m.id
        db.add(user)

    await db.commit()
    await db.refresh(m)
    logger.info("Warehouse %s (%s) created by %s", m.name, m.id, user.id)
    return WarehouseRead(**m.to_schema)


@router.patch("/{warehouse_id}", response_model=WarehouseRead)
async def update_warehouse(
    warehouse_id: UUID,
    payload: WarehouseUpdate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    m = await _get_warehouse(db, warehouse_id)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is not None:
        m.name = data["name"]
    if "location" in data:
        m.location = data["location"]
    if "manager" in data:
        m.manager = data["manager"]
    if "phone" in data:
        m.phone = data["phone"]
    if "company_id" in data:
        await _ensure_company(db, data["company_id"])
        m.company_id = data["company_id"]

    await db.commit()
    await db.refresh(m)
    return WarehouseRead(**m.to_schema)


@router.delete("/{warehouse_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_warehouse(
    warehouse_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Delete a warehouse with its items and movements."""
    m = await _get_warehouse(db, warehouse_id)
    try:
        await db.execute(delete(InventoryMovementModel).where(InventoryMovementModel.warehouse_id == m.id))
        await db.execute(delete(InventoryItemModel).where(InventoryItemModel.warehouse_id == m.id))
        await db.execute(
            update(UserModel)
            .where(UserModel.selected_warehouse_id == m.id)
            .values(selected_warehouse_id=None)
            .execution_options(synchronize_session=False)
        )
        if user.selected_warehouse_id == m.id:
            user.selected_warehouse_id = None
        await db.delete(m)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("delete_warehouse failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to delete warehouse: {e}")

    logger.info("Warehouse %s (%s) deleted", m.name, warehouse_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
