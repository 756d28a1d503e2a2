"""
Seed a demo company, two warehouses and a handful of products.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`

It uses the same DATABASE_* env vars as the backend (dotenv supported by core.config).
Re-running it only adds what is missing.
"""

import asyncio
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select

from db.database import async_session_maker, create_db_and_tables
from db.company import Company
from db.warehouse import Warehouse
from db.inventory.item import InventoryItem
from db.inventory.movement import InventoryMovement
from db.users import User

from fastapi_users.password import PasswordHelper


password_helper = PasswordHelper()


@dataclass(frozen=True)
class SeedItem:
    code: str
    name: str
    quantity: int
    price: float


SEED_WAREHOUSES: dict[str, list[SeedItem]] = {
    "Main Warehouse": [
        SeedItem("P001", "Laptop Dell XPS 15", 10, 1250.50),
        SeedItem("P002", "Mouse Logitech MX Master", 25, 89.99),
        SeedItem("P003", "Mechanical Keyboard RGB", 15, 120.00),
        SeedItem("P004", 'Monitor 27" 4K', 8, 450.75),
    ],
    "Store Room": [
        SeedItem("C001", "USB-C Cable 1m", 120, 7.50),
        SeedItem("C002", "HDMI Cable 2m", 60, 11.90),
    ],
}


async def get_or_create_user(session, email: str, username: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        username=username,
        full_name="Demo Administrator",
        hashed_password=password_helper.hash(password),
        is_active=True,
        is_superuser=True,
        is_verified=True,
    )
    session.add(user)
    await session.flush()
    return user


async def get_or_create_company(session, name: str) -> Company:
    result = await session.execute(select(Company).where(func.lower(Company.name) == name.lower()))
    company = result.scalar_one_or_none()
    if company:
        return company

    company = Company(name=name, tax_id="B00000000", address="1 Demo Street")
    session.add(company)
    await session.flush()
    return company


async def get_or_create_warehouse(session, name: str, company: Company, user: User) -> Warehouse:
    result = await session.execute(select(Warehouse).where(Warehouse.name == name))
    warehouse = result.scalar_one_or_none()
    if warehouse:
        return warehouse

    warehouse = Warehouse(name=name, company_id=company.id, created_by_user_id=user.id)
    session.add(warehouse)
    await session.flush()
    return warehouse


async def ensure_item(session, warehouse: Warehouse, user: User, seed: SeedItem) -> bool:
    result = await session.execute(
        select(InventoryItem.id).where(InventoryItem.warehouse_id == warehouse.id, InventoryItem.code == seed.code)
    )
    if result.first():
        return False

    item = InventoryItem(
        warehouse_id=warehouse.id,
        code=seed.code,
        name=seed.name,
        price_minor=int(round(seed.price * 100)),
        quantity_available=seed.quantity,
        quantity_initial_today=seed.quantity,
        quantity_used_today=0,
        day_started_on=date.today(),
        created_by_user_id=user.id,
    )
    session.add(item)
    await session.flush()
    session.add(
        InventoryMovement(
            warehouse_id=warehouse.id,
            item_id=item.id,
            item_code=item.code,
            item_name=item.name,
            movement_type="CREATE",
            quantity_before=0,
            quantity_change=seed.quantity,
            quantity_after=seed.quantity,
            description=f"Product created: {item.name}",
            created_by_user_id=user.id,
        )
    )
    return True


async def seed() -> None:
    await create_db_and_tables()
    async with async_session_maker() as session:
        async with session.begin():
            user = await get_or_create_user(session, "admin@example.com", "admin", "admin123")
            company = await get_or_create_company(session, "Demo Company")

            created = 0
            for warehouse_name, items in SEED_WAREHOUSES.items():
                warehouse = await get_or_create_warehouse(session, warehouse_name, company, user)
                if user.selected_warehouse_id is None:
                    user.selected_warehouse_id = warehouse.id
                for seed_item in items:
                    if await ensure_item(session, warehouse, user, seed_item):
                        created += 1

        print(f"Seeded {created} item(s) across {len(SEED_WAREHOUSES)} warehouse(s)")


if __name__ == "__main__":
    asyncio.run(seed())
