from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def _auth_headers(role=None) -> dict:
    resp = client.post("/auth/token", json={"user_id": "test", "role": role})
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _seed(headers, discount_percent=10) -> dict:
    c = client.post(
        "/clients",
        json={
            "name": "Acme Corp",
            "email": "billing@acme.example",
            "hourly_rate_cents": 15000,
            "discount_percent": discount_percent,
        },
        headers=headers,
    )
    assert c.status_code == 201, c.text
    design = client.post("/work_types", json={"code": "DESIGN", "description": "Design"}, headers=headers)
    dev = client.post("/work_types", json={"code": "DEV", "description": "Development"}, headers=headers)
    assert design.status_code == 201, design.text
    assert dev.status_code == 201, dev.text

    ids = {"client_id": c.json()["id"], "design": design.json()["id"], "dev": dev.json()["id"], "entries": []}
    for wt, day, minutes in [("design", "2024-01-03", 60), ("dev", "2024-01-10", 90), ("dev", "2024-01-11", 60)]:
        r = client.post(
            "/time_entries",
            json={
                "client_id": ids["client_id"],
                "work_type_id": ids[wt],
                "project_name": "Website",
                "work_date": day,
                "minutes_spent": minutes,
                "detail": "Work",
            },
            headers=headers,
        )
        assert r.status_code == 201, r.text
        ids["entries"].append(r.json()["id"])
    return ids


def _create_payload(ids, number=1001, **overrides) -> dict:
    payload = {
        "client_id": ids["client_id"],
        "start_date": "2024-01-01",
        "end_date": "2024-01-31",
        "invoice_number": number,
        "invoice_date": "2024-02-01",
        "due_date": "2024-03-02",
    }
    payload.update(overrides)
    return payload


def test_preview_then_create_invoice_from_time_entries():
    headers = _auth_headers()
    ids = _seed(headers)

    preview = client.post(
        "/invoices/preview_from_time_entries",
        json={"client_id": ids["client_id"], "start_date": "2024-01-01", "end_date": "2024-01-31"},
        headers=headers,
    )
    assert preview.status_code == 200, preview.text
    body = preview.json()
    assert (body["subtotal_cents"], body["discount_cents"], body["total_cents"]) == (52500, 5250, 47250)
    assert body["total_entries"] == 3
    assert "time_entry_ids" not in body["lines"][0]

    created = client.post("/invoices/from_time_entries", json=_create_payload(ids), headers=headers)
    assert created.status_code == 201, created.text
    invoice = created.json()
    assert invoice["invoice_number"] == 1001
    assert invoice["client_name"] == "Acme Corp"
    assert invoice["total_cents"] == 47250
    assert [l["work_type_code"] for l in invoice["lines"]] == ["DESIGN", "DEV"]

    entries = client.get(f"/time_entries?client_id={ids['client_id']}&is_invoiced=true", headers=headers)
    assert entries.status_code == 200
    assert sorted(e["id"] for e in entries.json()) == sorted(ids["entries"])
    assert {e["invoice_id"] for e in entries.json()} == {invoice["id"]}

    fetched = client.get(f"/invoices/{invoice['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json() == invoice


def test_create_invoice_error_statuses():
    headers = _auth_headers()
    ids = _seed(headers)

    assert client.post("/invoices/from_time_entries", json=_create_payload(ids), headers=headers).status_code == 201

    again = client.post("/invoices/from_time_entries", json=_create_payload(ids, number=1002), headers=headers)
    assert again.status_code == 404
    assert "No uninvoiced time entries" in again.text

    duplicate = client.post("/invoices/from_time_entries", json=_create_payload(ids, number=1001), headers=headers)
    assert duplicate.status_code == 409

    unknown = client.post(
        "/invoices/from_time_entries",
        json=_create_payload(ids, number=1003, client_id=999999),
        headers=headers,
    )
    assert unknown.status_code == 404
    assert "Client with ID 999999 not found" in unknown.text

    bad_date = client.post(
        "/invoices/from_time_entries",
        json=_create_payload(ids, number=1004, start_date="01/01/2024"),
        headers=headers,
    )
    assert bad_date.status_code == 422


def test_creating_invoices_requires_manager_role():
    manager = _auth_headers()
    ids = _seed(manager)

    employee = _auth_headers(role="EMPLOYEE")
    r = client.post("/invoices/from_time_entries", json=_create_payload(ids), headers=employee)
    assert r.status_code == 403

    # reads are open to any authenticated caller
    preview = client.post(
        "/invoices/preview_from_time_entries",
        json={"client_id": ids["client_id"], "start_date": "2024-01-01", "end_date": "2024-01-31"},
        headers=employee,
    )
    assert preview.status_code == 200


def test_next_invoice_number_endpoint():
    headers = _auth_headers()
    r = client.get("/invoices/next_invoice_number", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"next_invoice_number": 1}

    ids = _seed(headers)
    assert client.post("/invoices/from_time_entries", json=_create_payload(ids, number=41), headers=headers).status_code == 201

    r = client.get("/invoices/next_invoice_number", headers=headers)
    assert r.json() == {"next_invoice_number": 42}


def test_update_list_and_delete_invoice():
    headers = _auth_headers()
    ids = _seed(headers)
    invoice = client.post("/invoices/from_time_entries", json=_create_payload(ids), headers=headers).json()

    updated = client.put(f"/invoices/{invoice['id']}", json={"status": "sent"}, headers=headers)
    assert updated.status_code == 200, updated.text
    assert updated.json()["status"] == "sent"

    bad = client.put(f"/invoices/{invoice['id']}", json={"status": "archived"}, headers=headers)
    assert bad.status_code == 422

    listed = client.get(f"/invoices?client_id={ids['client_id']}&status=sent", headers=headers)
    assert [i["id"] for i in listed.json()] == [invoice["id"]]

    deleted = client.delete(f"/invoices/{invoice['id']}", headers=headers)
    assert deleted.status_code == 200, deleted.text
    assert client.get(f"/invoices/{invoice['id']}", headers=headers).status_code == 404

    free = client.get(f"/time_entries?client_id={ids['client_id']}&is_invoiced=false", headers=headers)
    assert len(free.json()) == 3


def test_manual_invoice_endpoint():
    headers = _auth_headers()
    ids = _seed(headers, discount_percent=0)

    r = client.post(
        "/invoices",
        json={
            "client_id": ids["client_id"],
            "invoice_number": 500,
            "invoice_date": "2024-01-31",
            "due_date": "2024-02-29",
            "lines": [{"work_type_id": ids["dev"], "total_minutes": 45, "hourly_rate_cents": 8000}],
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text
    assert r.json()["total_cents"] == 6000
    assert r.json()["status"] == "draft"

    # manual invoices never claim time entries
    free = client.get(f"/time_entries?client_id={ids['client_id']}&is_invoiced=false", headers=headers)
    assert len(free.json()) == 3
