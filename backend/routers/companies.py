from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from core.auth import current_active_user, current_active_superuser
from core.log import get_logger
from db.database import get_async_session, Company as CompanyModel, Warehouse as WarehouseModel
from schemas.companies import CompanyRead, CompanyCreate, CompanyUpdate
from db.users import User

router = APIRouter()
logger = get_logger("companies")


async def _get_company(db: AsyncSession, company_id: UUID) -> CompanyModel:
    res = await db.execute(select(CompanyModel).where(CompanyModel.id == company_id))
    m = res.scalar_one_or_none()
    if not m:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return m


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: UUID = None):
    stmt = select(CompanyModel.id).where(func.lower(CompanyModel.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(CompanyModel.id != exclude_id)
    existing = await db.execute(stmt)
    if existing.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company already exists")


@router.get("/", response_model=List[CompanyRead])
async def list_companies(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    res = await db.execute(select(CompanyModel).order_by(func.lower(CompanyModel.name).asc()))
    items = res.scalars().all()
    return [CompanyRead(**c.to_schema) for c in items]


@router.get("/{company_id}", response_model=CompanyRead)
async def get_company(
    company_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    m = await _get_company(db, company_id)
    return CompanyRead(**m.to_schema)


@router.post("/", response_model=CompanyRead, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_superuser),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
    await _ensure_name_free(db, name)

    m = CompanyModel(name=name, tax_id=payload.tax_id, address=payload.address, phone=payload.phone)
    db.add(m)
    await db.commit()
    await db.refresh(m)
    logger.info("Company %s (%s) created", m.name, m.id)
    return CompanyRead(**m.to_schema)


@router.patch("/{company_id}", response_model=CompanyRead)
async def update_company(
    company_id: UUID,
    payload: CompanyUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_superuser),
):
    m = await _get_company(db, company_id)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is not None:
        name = data["name"].strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
        await _ensure_name_free(db, name, exclude_id=m.id)
        m.name = name
    if "tax_id" in data:
        m.tax_id = data["tax_id"]
    if "address" in data:
        m.address = data["address"]
    if "phone" in data:
        m.phone = data["phone"]

    await db.commit()
    await db.refresh(m)
    return CompanyRead(**m.to_schema)


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_superuser),
):
    m = await _get_company(db, company_id)
    # Warehouses outlive their company
    await db.execute(
        update(WarehouseModel).where(WarehouseModel.company_id == m.id).values(company_id=None)
    )
    await db.delete(m)
    await db.commit()
    logger.info("Company %s (%s) deleted", m.name, company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
