from datetime import date, timedelta
from types import SimpleNamespace

from sqlalchemy import select

from core.daily_reset import needs_reset, rebaseline_item, reset_daily_quantities
from db.database import InventoryItem, Warehouse
from scripts.seed_demo_data import SeedItem, ensure_item


def test_needs_reset():
    today = date(2024, 5, 10)
    assert needs_reset(None, today)
    assert needs_reset(date(2024, 5, 9), today)
    assert not needs_reset(today, today)


async def _seed(db_session, day_started_on):
    wh_a = Warehouse(name="A")
    wh_b = Warehouse(name="B")
    db_session.add_all([wh_a, wh_b])
    await db_session.flush()
    db_session.add_all([
        InventoryItem(
            warehouse_id=wh_a.id, code="A1", name="Bolt", quantity_available=7,
            quantity_initial_today=10, quantity_used_today=3, day_started_on=day_started_on,
        ),
        InventoryItem(
            warehouse_id=wh_b.id, code="B1", name="Nut", quantity_available=4,
            quantity_initial_today=5, quantity_used_today=1, day_started_on=None,
        ),
    ])
    await db_session.commit()
    return wh_a, wh_b


async def _items(db_session):
    res = await db_session.execute(
        select(InventoryItem).order_by(InventoryItem.code).execution_options(populate_existing=True)
    )
    return res.scalars().all()


async def test_reset_rebaselines_stale_items_once(db_session):
    today = date(2024, 5, 10)
    await _seed(db_session, today - timedelta(days=1))

    assert await reset_daily_quantities(db_session, today=today) == 2
    a1, b1 = await _items(db_session)
    assert (a1.quantity_initial_today, a1.quantity_used_today, a1.quantity_available) == (7, 0, 7)
    assert (b1.quantity_initial_today, b1.quantity_used_today, b1.quantity_available) == (4, 0, 4)
    assert a1.day_started_on == today and b1.day_started_on == today

    # Same day: nothing left to do
    assert await reset_daily_quantities(db_session, today=today) == 0


async def test_reset_is_scoped_to_warehouse(db_session):
    today = date(2024, 5, 10)
    wh_a, _wh_b = await _seed(db_session, today - timedelta(days=1))

    assert await reset_daily_quantities(db_session, warehouse_id=wh_a.id, today=today) == 1
    a1, b1 = await _items(db_session)
    assert a1.quantity_used_today == 0
    assert b1.quantity_used_today == 1
    assert b1.day_started_on is None


async def test_forced_reset_touches_current_items(db_session):
    today = date(2024, 5, 10)
    await _seed(db_session, today)

    assert await reset_daily_quantities(db_session, today=today) == 1
    assert await reset_daily_quantities(db_session, today=today, force=True) == 2


def test_rebaseline_item_starts_a_new_day_once():
    today = date(2024, 5, 10)
    item = InventoryItem(
        code="A1", name="Bolt", quantity_available=7,
        quantity_initial_today=10, quantity_used_today=3, day_started_on=today - timedelta(days=1),
    )
    assert rebaseline_item(item, today)
    assert (item.quantity_initial_today, item.quantity_used_today, item.day_started_on) == (7, 0, today)

    item.quantity_used_today = 2
    assert not rebaseline_item(item, today)
    assert item.quantity_used_today == 2


async def test_seeded_items_start_today(db_session):
    wh = Warehouse(name="Seed")
    db_session.add(wh)
    await db_session.flush()
    user = SimpleNamespace(id=None)

    assert await ensure_item(db_session, wh, user, SeedItem("S1", "Sample", 4, 2.5))
    await db_session.commit()
    (item,) = await _items(db_session)
    assert item.day_started_on == date.today()
    assert (item.quantity_initial_today, item.quantity_used_today) == (4, 0)
