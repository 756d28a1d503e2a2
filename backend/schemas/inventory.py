import math
from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


# Quantities and minor-unit prices are stored in 32-bit integer columns
MAX_QUANTITY = 2_147_483_647
MAX_PRICE = MAX_QUANTITY / 100

MovementType = Literal["ENTRY", "EXIT", "CREATE", "EDIT", "ADJUST"]
StockMovementType = Literal["ENTRY", "EXIT"]


def _check_max(field: str, v) -> None:
    if field == "price":
        if not math.isfinite(v) or round(v * 100) > MAX_QUANTITY:
            raise ValueError(f"must be <= {MAX_PRICE:.2f}")
    elif v > MAX_QUANTITY:
        raise ValueError(f"must be <= {MAX_QUANTITY}")


class InventoryItemCreate(BaseModel):
    code: str
    name: str
    quantity: int = 0
    price: float = 0
    entry_date: Optional[date] = None

    @field_validator("code", "name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("quantity", "price")
    @classmethod
    def _non_negative(cls, v, info):
        if v < 0:
            raise ValueError("must be >= 0")
        _check_max(info.field_name, v)
        return v


class InventoryItemUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    price: Optional[float] = None
    quantity_available: Optional[int] = None

    @field_validator("code", "name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = (v or "").strip()
        if not v:
            raise ValueError("cannot be empty")
        return v

    @field_validator("price", "quantity_available")
    @classmethod
    def _non_negative_optional(cls, v, info):
        if v is not None and v < 0:
            raise ValueError("must be >= 0")
        if v is not None:
            _check_max(info.field_name, v)
        return v


class InventoryMovementCreate(BaseModel):
    movement_type: StockMovementType
    quantity: int
    movement_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        _check_max("quantity", v)
        return v

    @field_validator("description")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class InventoryItemOut(BaseModel):
    id: UUID
    warehouse_id: UUID
    warehouse_name: Optional[str] = None
    code: str
    name: str
    price: float
    quantity_available: int
    quantity_initial_today: int
    quantity_used_today: int
    total_value: float
    day_started_on: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InventoryMovementOut(BaseModel):
    id: UUID
    warehouse_id: UUID
    item_id: Optional[UUID] = None
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    movement_type: MovementType
    quantity_before: int
    quantity_change: int
    quantity_after: int
    description: Optional[str] = None
    created_at: datetime
    created_by_user_id: Optional[UUID] = None


class MovementResult(BaseModel):
    item: InventoryItemOut
    movement: InventoryMovementOut


class UsageRow(BaseModel):
    item_id: Optional[UUID] = None
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    units_used: int


class UsageReport(BaseModel):
    date_from: date
    date_to: date
    rows: List[UsageRow]
    total_units: int


class InventorySummary(BaseModel):
    total_products: int
    total_units: int
    total_used_today: int
    total_value: float


class ImportRowError(BaseModel):
    line: int
    message: str


class ImportResult(BaseModel):
    imported: int
    failed: int
    errors: List[ImportRowError]
