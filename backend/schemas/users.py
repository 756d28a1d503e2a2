# Pydantic schemas for user-related requests/responses
# fastapi-users provides the base schemas; the inventory adds username / full name
# and the warehouse selection.

from datetime import datetime
from pydantic import BaseModel, EmailStr, field_validator
from uuid import UUID
from fastapi_users import schemas
from typing import Optional


def _clean_username(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("username cannot be empty")
    if "@" in v:
        raise ValueError("username cannot contain '@'")
    return v


class UserRead(schemas.BaseUser[UUID]):
    username: str
    full_name: Optional[str] = None
    selected_warehouse_id: Optional[UUID] = None
    select_all_warehouses: bool = False
    created_at: Optional[datetime] = None


class UserCreate(schemas.BaseUserCreate):
    username: str
    full_name: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        return _clean_username(v)


class UserUpdate(schemas.BaseUserUpdate):
    username: Optional[str] = None
    full_name: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _username(cls, v: Optional[str]) -> Optional[str]:
        return _clean_username(v)


class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str
    username: str
    full_name: Optional[str] = None
    is_superuser: bool = False

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        return _clean_username(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v or len(v) < 6:
            raise ValueError("password must be at least 6 characters")
        return v


class SetupAdminRequest(AdminUserCreate):
    is_superuser: bool = True


class SetupAdminResponse(BaseModel):
    success: bool
    message: str
    user_id: Optional[UUID] = None
