from fastapi_users.db import SQLAlchemyBaseUserTableUUID
from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from .database import Base, utcnow


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"

    username = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)

    # Current warehouse selection (cleared by the warehouses router on delete);
    # select_all_warehouses covers the "all" pseudo-selection.
    selected_warehouse_id = Column(Uuid(as_uuid=True), nullable=True)
    select_all_warehouses = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "full_name": self.full_name,
            "is_active": bool(self.is_active),
            "is_superuser": bool(self.is_superuser),
            "is_verified": bool(self.is_verified),
            "created_at": self.created_at,
        }
