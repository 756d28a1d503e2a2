import uuid

from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    warehouse_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("warehouses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Snapshots so history survives item deletion and renames
    item_code = Column(String, nullable=True)
    item_name = Column(String, nullable=True)

    # 'ENTRY' | 'EXIT' | 'CREATE' | 'EDIT' | 'ADJUST'
    movement_type = Column(Text, nullable=False, index=True)
    quantity_before = Column(Integer, nullable=False, default=0)
    quantity_change = Column(Integer, nullable=False, default=0)
    quantity_after = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), index=True)
    created_by_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    item = relationship("InventoryItem")
    created_by_user = relationship("User")

    @property
    def to_schema(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "item_id": self.item_id,
            "item_code": self.item_code,
            "item_name": self.item_name,
            "movement_type": self.movement_type,
            "quantity_before": int(self.quantity_before or 0),
            "quantity_change": int(self.quantity_change or 0),
            "quantity_after": int(self.quantity_after or 0),
            "description": self.description,
            "created_at": self.created_at,
            "created_by_user_id": self.created_by_user_id,
        }
