from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, field_validator


class WarehouseRead(BaseModel):
    id: UUID
    name: str
    location: Optional[str] = None
    manager: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class WarehouseCreate(BaseModel):
    name: str
    location: Optional[str] = None
    manager: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[UUID] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v


class WarehouseUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    manager: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[UUID] = None

    @field_validator("name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class WarehouseSelection(BaseModel):
    # A warehouse id, the literal "all", or null to clear the selection
    warehouse_id: Optional[Union[UUID, str]] = None

    @field_validator("warehouse_id")
    @classmethod
    def _uuid_or_all(cls, v):
        if v is None or isinstance(v, UUID):
            return v
        v = v.strip()
        if v.lower() == "all":
            return "all"
        try:
            return UUID(v)
        except ValueError:
            raise ValueError("warehouse_id must be a warehouse id or 'all'")


class WarehouseSelectionRead(BaseModel):
    warehouse_id: Optional[UUID] = None
    all: bool = False
    warehouse: Optional[WarehouseRead] = None
