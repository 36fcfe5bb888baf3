import json

from app.config import settings


def _customer(client):
    response = client.post("/api/contacts", json={"name": "Asha Traders", "phone": "555-0101"})
    assert response.status_code == 201
    return response.json()


def _invoice(client, customer_id, **extra):
    payload = {
        "customer_id": customer_id,
        "items": [{"name": "Desk", "quantity": 2, "unit_price": 500, "tax_rate": 10}],
        **extra,
    }
    return client.post("/api/invoices", json=payload)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_business_defaults_and_update(client):
    response = client.get("/api/business")
    assert response.status_code == 200
    assert response.json()["invoice_prefix"] == settings.default_invoice_prefix

    response = client.put("/api/business", json={"invoice_prefix": "SHOP", "currency_code": "EUR"})
    assert response.status_code == 200
    assert response.json()["invoice_prefix"] == "SHOP"

    assert client.put("/api/business", json={"currency_code": "XXX"}).status_code == 422


def test_invoice_payment_flow(client):
    customer = _customer(client)
    response = _invoice(client, customer["id"])
    assert response.status_code == 201
    body = response.json()
    assert body["invoice"]["total"] == 1100
    assert body["invoice"]["customer_name"] == "Asha Traders"
    invoice_id = body["invoice"]["id"]

    response = client.post(f"/api/invoices/{invoice_id}/payments", json={"amount": 500, "method": "cash"})
    assert response.status_code == 201
    assert response.json()["invoice"]["status"] == "partial"
    payment_id = response.json()["payment"]["id"]

    response = client.post(f"/api/invoices/{invoice_id}/payments", json={"amount": 1000})
    body = response.json()
    assert response.status_code == 201
    assert body["invoice"]["status"] == "paid"
    assert body["invoice"]["balance_due"] == 0
    assert body["warnings"][0]["code"] == "overpayment"

    response = client.delete(f"/api/invoices/{invoice_id}/payments/{payment_id}")
    assert response.status_code == 200
    assert response.json()["invoice"]["paid"] == 1000

    listed = client.get("/api/invoices", params={"status": "partial"}).json()
    assert [inv["id"] for inv in listed] == [invoice_id]


def test_prefix_change_applies_to_new_invoices(client):
    customer = _customer(client)
    client.put("/api/business", json={"invoice_prefix": "SHOP"})
    body = _invoice(client, customer["id"]).json()
    assert body["invoice_no"].startswith("SHOP-")


def test_validation_errors_map_to_400(client):
    response = client.post("/api/invoices", json={"items": []})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please select a customer"

    customer = _customer(client)
    invoice_id = _invoice(client, customer["id"]).json()["invoice"]["id"]
    response = client.post(f"/api/invoices/{invoice_id}/payments", json={"amount": 0})
    assert response.status_code == 400


def test_missing_resources_map_to_404(client):
    assert client.get("/api/invoices/nope").status_code == 404
    assert client.post("/api/invoices/nope/payments", json={"amount": 5}).status_code == 404
    assert client.get("/api/products/nope").status_code == 404
    assert client.delete("/api/contacts/nope").status_code == 404


def test_deleted_customer_shows_unknown(client):
    customer = _customer(client)
    invoice_id = _invoice(client, customer["id"]).json()["invoice"]["id"]
    assert client.delete(f"/api/contacts/{customer['id']}").status_code == 200

    response = client.get(f"/api/invoices/{invoice_id}")
    assert response.status_code == 200
    assert response.json()["customer_name"] == "Unknown"


def test_products_and_stock(client):
    response = client.post("/api/products", json={"name": "Pen", "sale_price": 2, "stock": 3, "min_stock": 5})
    assert response.status_code == 201
    product_id = response.json()["id"]

    response = client.post(f"/api/products/{product_id}/stock", json={"mode": "out", "quantity": 10})
    assert response.json()["stock"] == 0

    summary = client.get("/api/products/summary").json()
    assert summary["low_stock_count"] == 1


def test_contact_rollup_and_receivable(client):
    customer = _customer(client)
    invoice_id = _invoice(client, customer["id"]).json()["invoice"]["id"]
    client.post(f"/api/invoices/{invoice_id}/payments", json={"amount": 100})

    rollup = client.get(f"/api/contacts/{customer['id']}/rollup").json()
    assert rollup["total_paid"] == 100
    assert rollup["balance"] == 1000
    assert client.get("/api/contacts/receivable").json()["total_receivable"] == 1000


def test_reports(client):
    customer = _customer(client)
    _invoice(client, customer["id"])

    dashboard = client.get("/api/reports/dashboard").json()
    assert dashboard["sales_today"] == 1100
    assert dashboard["customer_count"] == 1
    assert len(dashboard["recent_invoices"]) == 1

    report = client.get("/api/reports/sales", params={"period": "3m"}).json()
    assert len(report["months"]) == 3
    assert client.get("/api/reports/sales", params={"period": "2w"}).status_code == 422

    integrity = client.get("/api/reports/integrity").json()
    assert integrity["ok"] is True


def test_reset_keeps_invoice_numbering(client):
    customer = _customer(client)
    _invoice(client, customer["id"])
    response = client.post("/api/business/reset")
    assert response.status_code == 200
    assert client.get("/api/invoices").json() == []

    customer = _customer(client)
    body = _invoice(client, customer["id"]).json()
    assert body["invoice"]["sequence"] == 2


def test_business_header_isolates_data(client):
    _customer(client)
    response = client.get("/api/contacts", headers={"X-Business-Id": "other-shop"})
    assert response.json() == []


def test_snapshot_read_and_stream(client):
    customer = _customer(client)
    _invoice(client, customer["id"])

    snapshot = client.get("/api/sync/invoices").json()
    assert len(snapshot["documents"]) == 1

    with client.stream("GET", "/api/sync/customers/stream", params={"max_events": 1}) as response:
        assert response.status_code == 200
        lines = [line for line in response.iter_lines() if line]
    event = json.loads(lines[0])
    assert event["collection"] == "customers"
    assert [doc["name"] for doc in event["documents"]] == ["Asha Traders"]

    assert client.get("/api/sync/widgets").status_code == 422


def test_business_options(client):
    options = client.get("/api/business/options").json()
    assert "USD" in [c["code"] for c in options["currencies"]]
    assert "YYYY-MM-DD" in options["date_formats"]


def test_sales_report_default_period(client):
    report = client.get("/api/reports/sales").json()
    assert len(report["months"]) == settings.report_default_months


def test_non_finite_money_is_rejected(client):
    customer = _customer(client)
    invoice_id = _invoice(client, customer["id"]).json()["invoice"]["id"]

    for amount in ("Infinity", "-Infinity", "NaN"):
        response = client.post(f"/api/invoices/{invoice_id}/payments", json={"amount": amount})
        assert response.status_code == 422

    stored = client.get(f"/api/invoices/{invoice_id}").json()
    assert stored["paid"] == 0
    assert stored["payments"] == []

    item = {"name": "Desk", "quantity": "Infinity", "unit_price": 500}
    assert client.post("/api/invoices", json={"customer_id": customer["id"], "items": [item]}).status_code == 422
    assert _invoice(client, customer["id"], discount="Infinity").status_code == 422
    assert client.post("/api/products", json={"name": "Pen", "sale_price": "Infinity"}).status_code == 422


def test_business_header_must_be_a_plain_identifier(client):
    for header in ("../escaped", "/etc", "a/b", "x" * 65):
        response = client.get("/api/contacts", headers={"X-Business-Id": header})
        assert response.status_code == 400
    assert client.get("/api/contacts", headers={"X-Business-Id": "shop_2-b"}).status_code == 200
