from fastapi.testclient import TestClient

from invoicing.app import app
from invoicing.numbering import financial_year

client = TestClient(app)

INVOICE = {
    "client_name": "Acme",
    "invoice_date": "2024-06-10",
    "bill_from": {"name": "Designer Square", "street_address": "LIG-405, Dindayal Nagar"},
    "bill_to": {"street_address": "Ram Nagar", "city": "Bhilai"},
    "items": [
        {"name": "Signage design", "quantity": 2, "rate": "100"},
        {"name": "Printing", "quantity": 1, "rate": "50"},
    ],
    "tax_mode": "auto",
}


def _create_invoice(**overrides):
    resp = client.post("/invoices", json={**INVOICE, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_invoice_lifecycle(db):
    created = _create_invoice()
    invoice_id = created["id"]
    assert invoice_id == f"DS/{financial_year()}/0001"
    assert float(created["total"]) == 295.0

    resp = client.get(f"/invoices/{invoice_id}")
    assert resp.status_code == 200
    assert resp.json()["client_name"] == "Acme"
    assert len(client.get("/invoices").json()) == 1

    html = client.get(f"/invoices/{invoice_id}/html")
    assert html.status_code == 200
    assert "TAX INVOICE" in html.text

    resp = client.put(f"/invoices/{invoice_id}", json={**INVOICE, "tax_mode": "none"})
    assert resp.status_code == 200
    assert float(resp.json()["total"]) == 250.0

    resp = client.post("/invoices/mark-paid", json={"id": invoice_id})
    assert resp.status_code == 200
    assert resp.json()["status"] == "paid"

    resp = client.put(f"/invoices/{invoice_id}", json=INVOICE)
    assert resp.status_code == 409

    resp = client.delete(f"/invoices/{invoice_id}")
    assert resp.status_code == 200
    assert client.get(f"/invoices/{invoice_id}").status_code == 404


def test_invalid_invoice_is_rejected(db):
    resp = client.post("/invoices", json={**INVOICE, "items": []})
    assert resp.status_code == 400
    assert "valid item" in resp.json()["detail"]

    resp = client.post("/invoices", json={**INVOICE, "tax_mode": "manual", "tax_percent": "-5"})
    assert resp.status_code == 400


def test_missing_resources(db):
    assert client.get("/invoices/DS/2099-00/0001").status_code == 404
    assert client.delete("/invoices/DS/2099-00/0001").status_code == 404
    assert client.get("/ledger/Nobody").status_code == 404
    assert client.delete("/ledger/entries/9999").status_code == 404


def test_ledger_flow(db):
    _create_invoice()

    resp = client.post("/ledger/Acme", json={"date": "2024-06-20", "method": "upi", "amount": "100"})
    assert resp.status_code == 201
    payment = resp.json()
    assert payment["particulars"] == "PAYMENT RECEIVED UPI"

    resp = client.post("/ledger/Acme", json={"date": "2024-06-21", "particulars": "Both", "dr": "5", "cr": "5"})
    assert resp.status_code == 400

    resp = client.post("/ledger/Acme", json={"date": "2024-06-21", "particulars": "Opening Balance", "dr": "5"})
    assert resp.status_code == 409

    view = client.get("/ledger/Acme", params={"year": "2024-25"}).json()
    assert [e["particulars"] for e in view["entries"]][0] == "Opening Balance"
    assert float(view["totals"]["final_balance"]) == 195.0
    linked = view["entries"][1]
    assert linked["particulars"].startswith("BY BILL ")

    assert client.delete(f"/ledger/entries/{linked['id']}").status_code == 409
    resp = client.put(
        f"/ledger/entries/{linked['id']}", json={"date": "2024-06-21", "method": "cash", "amount": "1"}
    )
    assert resp.status_code == 409

    resp = client.put(f"/ledger/entries/{payment['id']}", json={"date": "2024-06-22", "method": "cash", "amount": "150"})
    assert resp.status_code == 200
    assert float(resp.json()["credit"]) == 150.0

    customers = client.get("/customers", params={"year": "2024-25"}).json()
    assert [(c["name"], float(c["balance"])) for c in customers] == [("Acme", 145.0)]

    assert client.delete(f"/ledger/entries/{payment['id']}").status_code == 200

    assert client.get("/ledger/Acme", params={"year": "2024"}).status_code == 400


def test_statement_pages_and_html(db):
    for day in (1, 2, 3):
        _create_invoice(invoice_date=f"2024-05-0{day}")

    pages = client.get("/ledger/Acme/pages", params={"year": "2024-25", "page_size": 2}).json()
    assert [len(p["entries"]) for p in pages] == [2, 2]
    assert [p["is_last_page"] for p in pages] == [False, True]

    resp = client.get("/ledger/Acme/statement", params={"year": "2024-25", "page_size": 2})
    assert resp.status_code == 200
    assert resp.text.count('class="statement-page"') == 2
    assert resp.text.count('class="totals-row"') == 1

    resp = client.get("/ledger/Acme/statement", params={"year": "2024-25", "page_size": 0})
    assert resp.status_code == 400


def test_customer_create(db):
    resp = client.post("/customers", json={"name": "Acme", "city": "Bhilai"})
    assert resp.status_code == 201
    assert resp.json()["city"] == "Bhilai"
    assert client.post("/customers", json={"name": "Acme"}).status_code == 400

    statement = client.get("/ledger/Acme/statement", params={"year": "2024-25"})
    assert "No entries found for 2024-25." in statement.text


def test_customer_update_and_delete(db):
    _create_invoice()
    globex = client.post("/customers", json={"name": "Globex"}).json()
    customers = client.get("/customers", params={"year": "2024-25"}).json()
    acme_id = next(c["customer_id"] for c in customers if c["name"] == "Acme")

    resp = client.put(f"/customers/{acme_id}", json={"name": "Acme", "city": "Durg"})
    assert resp.status_code == 200
    assert resp.json()["city"] == "Durg"
    assert client.put(f"/customers/{acme_id}", json={"name": "Globex"}).status_code == 400
    assert client.put("/customers/9999", json={"name": "Initech"}).status_code == 404

    assert client.delete(f"/customers/{acme_id}").status_code == 200
    assert client.get("/ledger/Acme").status_code == 404
    assert client.delete(f"/customers/{acme_id}").status_code == 404
    assert [c["name"] for c in client.get("/customers").json()] == [globex["name"]]


def test_item_suggestions_endpoint(db):
    _create_invoice()
    _create_invoice(items=[{"name": " Printing ", "quantity": 3, "rate": "5"}])
    assert client.get("/items/suggestions").json() == ["Printing", "Signage design"]
