from datetime import date, timedelta
from uuid import UUID

import pytest
from sqlalchemy import select, update

from conftest import create_item, create_user, create_warehouse, login
from db.database import InventoryItem, InventoryMovement, Warehouse


async def test_create_and_list_items(client, admin_headers, warehouse):
    item = await create_item(client, admin_headers, "B-2", "bolt", quantity=5, price=0.25)
    await create_item(client, admin_headers, "A-1", "Anchor", quantity=2, price=10)

    assert item["warehouse_id"] == warehouse["id"]
    assert item["warehouse_name"] == "Main Warehouse"
    assert item["quantity_available"] == 5
    assert item["quantity_initial_today"] == 5
    assert item["quantity_used_today"] == 0
    assert item["total_value"] == pytest.approx(1.25)

    resp = await client.get("/inventory/items", headers=admin_headers)
    assert [i["name"] for i in resp.json()] == ["Anchor", "bolt"]

    resp = await client.get("/inventory/items", params={"q": "b-2"}, headers=admin_headers)
    assert [i["code"] for i in resp.json()] == ["B-2"]

    movements = (await client.get(f"/inventory/items/{item['id']}/movements", headers=admin_headers)).json()
    assert len(movements) == 1
    assert movements[0]["movement_type"] == "CREATE"
    assert movements[0]["quantity_after"] == 5
    assert movements[0]["description"] == "Product created: bolt"


async def test_entry_date_backdates_item(client, admin_headers, warehouse):
    resp = await client.post(
        "/inventory/items",
        json={"code": "OLD", "name": "Old stock", "quantity": 1, "entry_date": "2025-12-01"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["created_at"].startswith("2025-12-01T00:00:00")


async def test_duplicates_and_validation(client, admin_headers, warehouse):
    await create_item(client, admin_headers, "A1", "Hammer")

    resp = await client.post("/inventory/items", json={"code": "A1", "name": "Other"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Duplicate code"

    resp = await client.post("/inventory/items", json={"code": "A2", "name": "hammer"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Duplicate name"

    resp = await client.post(
        "/inventory/items", json={"code": "A3", "name": "Saw", "quantity": -1}, headers=admin_headers
    )
    assert resp.status_code == 422
    resp = await client.post("/inventory/items", json={"code": " ", "name": "Saw"}, headers=admin_headers)
    assert resp.status_code == 422

    # the same code is fine in another warehouse
    other = await create_warehouse(client, admin_headers, "Other")
    await create_item(client, admin_headers, "A1", "Hammer", warehouse_id=other["id"])


async def test_warehouse_scope_rules(client, admin_headers, warehouse):
    await create_user(client, admin_headers, "gina")
    gina = await login(client, "gina", "user123456")

    resp = await client.get("/inventory/items", headers=gina)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No warehouse selected"
    resp = await client.post("/inventory/items", json={"code": "X", "name": "X"}, headers=gina)
    assert resp.status_code == 400

    await client.put("/warehouses/selected", json={"warehouse_id": "all"}, headers=gina)
    assert (await client.get("/inventory/items", headers=gina)).status_code == 200
    resp = await client.post("/inventory/items", json={"code": "X", "name": "X"}, headers=gina)
    assert resp.status_code == 400

    resp = await client.post(
        "/inventory/items", json={"code": "X", "name": "X"}, params={"warehouse_id": "all"}, headers=admin_headers
    )
    assert resp.status_code == 400
    resp = await client.get("/inventory/items", params={"warehouse_id": "bogus"}, headers=admin_headers)
    assert resp.status_code == 400


async def test_entry_and_exit_movements(client, admin_headers, warehouse):
    item = await create_item(client, admin_headers, "N1", "Nails", quantity=10)
    url = f"/inventory/items/{item['id']}/movements"

    resp = await client.post(url, json={"movement_type": "ENTRY", "quantity": 5}, headers=admin_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["item"]["quantity_available"] == 15
    assert body["movement"]["quantity_change"] == 5
    assert body["movement"]["description"] == "Entry of 5 units"

    resp = await client.post(
        url, json={"movement_type": "EXIT", "quantity": 4, "description": "Job 12"}, headers=admin_headers
    )
    body = resp.json()
    assert body["item"]["quantity_available"] == 11
    assert body["item"]["quantity_used_today"] == 4
    assert body["movement"]["quantity_before"] == 15
    assert body["movement"]["quantity_change"] == -4
    assert body["movement"]["description"] == "Job 12"

    resp = await client.post(url, json={"movement_type": "EXIT", "quantity": 12}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Not enough stock available"
    item_now = (await client.get(f"/inventory/items/{item['id']}", headers=admin_headers)).json()
    assert item_now["quantity_available"] == 11

    resp = await client.post(url, json={"movement_type": "EXIT", "quantity": 0}, headers=admin_headers)
    assert resp.status_code == 422
    resp = await client.post(url, json={"movement_type": "ADJUST", "quantity": 1}, headers=admin_headers)
    assert resp.status_code == 422


async def test_patch_records_adjust_edit_or_nothing(client, admin_headers, warehouse):
    item = await create_item(client, admin_headers, "P1", "Paint", quantity=8, price=3)
    url = f"/inventory/items/{item['id']}"

    resp = await client.patch(url, json={"quantity_available": 5}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["quantity_available"] == 5
    assert resp.json()["quantity_used_today"] == 3

    resp = await client.patch(url, json={"name": "Wall paint", "price": 4.5}, headers=admin_headers)
    assert resp.json()["name"] == "Wall paint"
    assert resp.json()["price"] == pytest.approx(4.5)

    resp = await client.patch(url, json={"name": "Wall paint", "quantity_available": 5}, headers=admin_headers)
    assert resp.status_code == 200

    movements = (await client.get(f"{url}/movements", headers=admin_headers)).json()
    assert sorted(m["movement_type"] for m in movements) == ["ADJUST", "CREATE", "EDIT"]
    adjust = next(m for m in movements if m["movement_type"] == "ADJUST")
    assert adjust["quantity_change"] == -3
    assert adjust["description"] == "Quantity adjusted from 8 to 5"

    await create_item(client, admin_headers, "P2", "Primer")
    resp = await client.patch(url, json={"code": "P2"}, headers=admin_headers)
    assert resp.status_code == 409


async def test_delete_item_keeps_history(client, admin_headers, warehouse):
    item = await create_item(client, admin_headers, "D1", "Drill", quantity=3)
    resp = await client.delete(f"/inventory/items/{item['id']}", headers=admin_headers)
    assert resp.status_code == 204
    assert (await client.get(f"/inventory/items/{item['id']}", headers=admin_headers)).status_code == 404
    assert (await client.delete(f"/inventory/items/{item['id']}", headers=admin_headers)).status_code == 404

    movements = (await client.get("/inventory/movements", headers=admin_headers)).json()
    assert len(movements) == 1
    assert movements[0]["item_id"] is None
    assert movements[0]["item_code"] == "D1"
    assert movements[0]["item_name"] == "Drill"


async def test_movement_filters(client, admin_headers, warehouse):
    item = await create_item(client, admin_headers, "F1", "Filter", quantity=20)
    url = f"/inventory/items/{item['id']}/movements"
    await client.post(url, json={"movement_type": "EXIT", "quantity": 1, "movement_date": "2021-03-05"}, headers=admin_headers)
    await client.post(url, json={"movement_type": "ENTRY", "quantity": 2, "movement_date": "2021-03-20"}, headers=admin_headers)

    resp = await client.get(
        "/inventory/movements",
        params={"date_from": "2021-03-01", "date_to": "2021-03-31"},
        headers=admin_headers,
    )
    assert [m["movement_type"] for m in resp.json()] == ["ENTRY", "EXIT"]

    resp = await client.get("/inventory/movements", params={"movement_type": "EXIT"}, headers=admin_headers)
    assert [m["quantity_change"] for m in resp.json()] == [-1]

    resp = await client.get("/inventory/movements", params={"limit": 1}, headers=admin_headers)
    assert len(resp.json()) == 1
    resp = await client.get("/inventory/movements", params={"limit": 0}, headers=admin_headers)
    assert resp.status_code == 422


async def test_usage_report(client, admin_headers, warehouse):
    glue = await create_item(client, admin_headers, "G1", "Glue", quantity=20)
    tape = await create_item(client, admin_headers, "T1", "Tape", quantity=20)

    async def exit_(item, qty, day):
        resp = await client.post(
            f"/inventory/items/{item['id']}/movements",
            json={"movement_type": "EXIT", "quantity": qty, "movement_date": day},
            headers=admin_headers,
        )
        assert resp.status_code == 201

    await exit_(glue, 3, "2026-01-10")
    await exit_(glue, 2, "2026-01-12")
    await exit_(tape, 7, "2026-01-31")
    await exit_(tape, 1, "2026-02-01")

    resp = await client.get(
        "/inventory/usage", params={"date_from": "2026-01-01", "date_to": "2026-01-31"}, headers=admin_headers
    )
    assert resp.status_code == 200
    report = resp.json()
    assert [(r["item_code"], r["units_used"]) for r in report["rows"]] == [("T1", 7), ("G1", 5)]
    assert report["total_units"] == 12

    resp = await client.get(
        "/inventory/usage", params={"date_from": "2026-02-01", "date_to": "2026-01-01"}, headers=admin_headers
    )
    assert resp.status_code == 400


async def test_summary_and_daily_reset(client, admin_headers, warehouse):
    a = await create_item(client, admin_headers, "S1", "Screws", quantity=10, price=2.5)
    await create_item(client, admin_headers, "S2", "Spacers", quantity=4, price=1)
    await client.post(
        f"/inventory/items/{a['id']}/movements", json={"movement_type": "EXIT", "quantity": 3}, headers=admin_headers
    )

    summary = (await client.get("/inventory/summary", headers=admin_headers)).json()
    assert summary == {
        "total_products": 2,
        "total_units": 11,
        "total_used_today": 3,
        "total_value": pytest.approx(21.5),
    }

    resp = await client.post("/inventory/reset-daily", headers=admin_headers)
    assert resp.json() == {"warehouse_id": warehouse["id"], "reset": 0}

    resp = await client.post("/inventory/reset-daily", params={"force": "true"}, headers=admin_headers)
    assert resp.json()["reset"] == 2
    screws = (await client.get(f"/inventory/items/{a['id']}", headers=admin_headers)).json()
    assert screws["quantity_initial_today"] == 7
    assert screws["quantity_used_today"] == 0


async def test_inventory_requires_login(client):
    assert (await client.get("/inventory/items")).status_code == 401


async def _start_item_yesterday(db_session, item_id: str, *, available: int, used: int):
    await db_session.execute(
        update(InventoryItem)
        .where(InventoryItem.id == UUID(item_id))
        .values(
            quantity_available=available,
            quantity_initial_today=available + used,
            quantity_used_today=used,
            day_started_on=date.today() - timedelta(days=1),
        )
    )
    await db_session.commit()


async def test_first_exit_of_the_day_starts_new_counters(client, admin_headers, warehouse, db_session):
    item = await create_item(client, admin_headers, "Y1", "Yarn", quantity=10)
    await _start_item_yesterday(db_session, item["id"], available=10, used=3)

    resp = await client.post(
        f"/inventory/items/{item['id']}/movements", json={"movement_type": "EXIT", "quantity": 2}, headers=admin_headers
    )
    after_exit = resp.json()["item"]
    assert (after_exit["quantity_initial_today"], after_exit["quantity_used_today"]) == (10, 2)

    (listed,) = (await client.get("/inventory/items", headers=admin_headers)).json()
    assert (listed["quantity_initial_today"], listed["quantity_used_today"], listed["quantity_available"]) == (10, 2, 8)
    assert listed["day_started_on"] == date.today().isoformat()


async def test_first_patch_and_read_of_the_day_start_new_counters(client, admin_headers, warehouse, db_session):
    item = await create_item(client, admin_headers, "Y2", "Yeast", quantity=10)
    await _start_item_yesterday(db_session, item["id"], available=10, used=4)

    resp = await client.patch(f"/inventory/items/{item['id']}", json={"quantity_available": 7}, headers=admin_headers)
    assert (resp.json()["quantity_initial_today"], resp.json()["quantity_used_today"]) == (10, 3)

    await _start_item_yesterday(db_session, item["id"], available=7, used=5)
    resp = await client.get(f"/inventory/items/{item['id']}", headers=admin_headers)
    assert (resp.json()["quantity_initial_today"], resp.json()["quantity_used_today"]) == (7, 0)


async def test_values_beyond_integer_columns_are_rejected(client, admin_headers, warehouse):
    resp = await client.post(
        "/inventory/items", json={"code": "H1", "name": "Huge", "quantity": 10**20}, headers=admin_headers
    )
    assert resp.status_code == 422
    resp = await client.post(
        "/inventory/items", json={"code": "H1", "name": "Huge", "price": 1e12}, headers=admin_headers
    )
    assert resp.status_code == 422

    item = await create_item(client, admin_headers, "H2", "Heap", quantity=2_147_483_600)
    resp = await client.patch(
        f"/inventory/items/{item['id']}", json={"quantity_available": 2_147_483_648}, headers=admin_headers
    )
    assert resp.status_code == 422
    resp = await client.post(
        f"/inventory/items/{item['id']}/movements", json={"movement_type": "ENTRY", "quantity": 100}, headers=admin_headers
    )
    assert resp.status_code == 409
    item_now = (await client.get(f"/inventory/items/{item['id']}", headers=admin_headers)).json()
    assert item_now["quantity_available"] == 2_147_483_600


async def test_duplicate_name_folds_accented_case(client, admin_headers, warehouse):
    await create_item(client, admin_headers, "E1", "Éclair")
    resp = await client.post("/inventory/items", json={"code": "E2", "name": "ÉCLAIR"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Duplicate name"


async def test_rows_record_their_creator(client, admin_headers, warehouse, db_session):
    me = (await client.get("/users/me", headers=admin_headers)).json()
    item = await create_item(client, admin_headers, "U1", "Umbrella")

    wh = (await db_session.execute(select(Warehouse).where(Warehouse.id == UUID(warehouse["id"])))).scalar_one()
    it = (await db_session.execute(select(InventoryItem).where(InventoryItem.id == UUID(item["id"])))).scalar_one()
    mv = (await db_session.execute(select(InventoryMovement).where(InventoryMovement.item_id == it.id))).scalar_one()
    assert str(wh.created_by_user_id) == me["id"]
    assert str(it.created_by_user_id) == me["id"]
    assert str(mv.created_by_user_id) == me["id"]
