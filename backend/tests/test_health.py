from conftest import create_item


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_health_db(client):
    resp = await client.get("/health/db")
    body = resp.json()
    assert body["ok"] is True
    assert set(body["tables"]) == {"users", "warehouses", "inventory_items", "inventory_movements", "companies"}
    assert all(t == {"ok": True, "error": None} for t in body["tables"].values())


async def test_report_downloads(client, admin_headers, warehouse):
    await create_item(client, admin_headers, "R1", "Rope", quantity=3, price=4)

    resp = await client.get("/reports/csv", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "Rope" in resp.text

    resp = await client.get("/reports/word", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/msword")
    assert 'filename="inventory_report_' in resp.headers["content-disposition"]
    assert ".doc" in resp.headers["content-disposition"]
    assert "Rope" in resp.text

    resp = await client.get("/reports/pdf", params={"warehouse_id": "all"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


async def test_reports_need_a_scope(client, admin_headers):
    resp = await client.get("/reports/pdf", headers=admin_headers)
    assert resp.status_code == 400
