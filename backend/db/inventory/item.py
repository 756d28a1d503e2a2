import uuid

from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("warehouse_id", "code", name="ux_inventory_items_warehouse_code"),
        CheckConstraint("quantity_available >= 0", name="ck_inventory_items_available_non_negative"),
        CheckConstraint("price_minor >= 0", name="ck_inventory_items_price_non_negative"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    warehouse_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("warehouses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    price_minor = Column(Integer, nullable=False, default=0)

    quantity_available = Column(Integer, nullable=False, default=0)
    quantity_initial_today = Column(Integer, nullable=False, default=0)
    quantity_used_today = Column(Integer, nullable=False, default=0)
    # Calendar day the *_today counters belong to
    day_started_on = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)
    created_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    warehouse = relationship("Warehouse", back_populates="items")

    @property
    def price(self) -> float:
        return float(self.price_minor or 0) / 100.0

    @property
    def total_value(self) -> float:
        return float(self.quantity_available or 0) * self.price

    def to_schema(self, warehouse_name=None) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "warehouse_name": warehouse_name,
            "code": self.code,
            "name": self.name,
            "price": self.price,
            "quantity_available": int(self.quantity_available or 0),
            "quantity_initial_today": int(self.quantity_initial_today or 0),
            "quantity_used_today": int(self.quantity_used_today or 0),
            "total_value": self.total_value,
            "day_started_on": self.day_started_on,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
