"""
Payments API tests.

Verifies:
- Auth is required
- Create returns 201 with allocations; validation errors are 400
- Persistence failures are 500 without internal detail
- List/get/outstanding endpoints
"""

from datetime import datetime

from orderdesk.services import payment_service
from orderdesk.validation import PersistenceError


class TestCreatePaymentRoute:

    def test_requires_auth(self, client, db_session):
        resp = client.post("/api/payments", json={"amount": 10, "method": "cash"})
        assert resp.status_code == 401

    def test_created_with_allocations(self, client, auth_headers, make_order):
        o1 = make_order(invoiced=100, created_at=datetime(2024, 1, 2))
        o0 = make_order(invoiced=75, created_at=datetime(2024, 1, 1))

        resp = client.post("/api/payments", json={"amount": 180, "method": "check", "reference": "CHK-9"},
                           headers=auth_headers)

        assert resp.status_code == 201
        payment = resp.get_json()["payment"]
        assert payment["amount"] == 180.0
        assert payment["amount_cents"] == 180_00
        assert payment["reference"] == "CHK-9"
        assert payment["sales_order_id"] is None
        assert [(a["sales_order_id"], a["amount_cents"]) for a in payment["allocations"]] == [
            (o0.id, 75_00), (o1.id, 100_00),
        ]

    def test_validation_error_is_400(self, client, auth_headers, make_order):
        order = make_order(invoiced=10)
        resp = client.post("/api/payments", json={
            "amount": 50, "method": "cash",
            "allocations": [{"sales_order_id": order.id, "amount": 20}],
        }, headers=auth_headers)
        assert resp.status_code == 400
        assert "exceeds outstanding" in resp.get_json()["error"]

    def test_invalid_body_is_400(self, client, auth_headers):
        resp = client.post("/api/payments", data="not json", headers=auth_headers)
        assert resp.status_code == 400

    def test_huge_amount_is_400(self, client, auth_headers):
        resp = client.post("/api/payments", json={"amount": 1e20, "method": "cash"}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "amount is too large"

    def test_persistence_error_hides_detail(self, client, auth_headers, monkeypatch):
        def boom(*args, **kwargs):
            raise PersistenceError("create payment: disk I/O error at /var/db")

        monkeypatch.setattr(payment_service, "create_payment", boom)
        resp = client.post("/api/payments", json={"amount": 1, "method": "cash"}, headers=auth_headers)
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}


class TestPaymentQueryRoutes:

    def test_get_and_404(self, client, auth_headers, make_order):
        make_order(invoiced=10)
        created = client.post("/api/payments", json={"amount": 5, "method": "cash"},
                              headers=auth_headers).get_json()["payment"]

        resp = client.get(f"/api/payments/{created['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["payment"]["allocations"][0]["amount_cents"] == 5_00

        assert client.get("/api/payments/9999", headers=auth_headers).status_code == 404

    def test_list_with_filters(self, client, auth_headers, make_order):
        order = make_order(invoiced=100)
        client.post("/api/payments", json={"amount": 5, "method": "cash", "date": "2024-05-01"},
                    headers=auth_headers)
        client.post("/api/payments", json={"amount": 5, "method": "cash", "date": "2024-06-01"},
                    headers=auth_headers)

        resp = client.get(f"/api/payments?sales_order_id={order.id}&from=2024-05-15", headers=auth_headers)
        assert resp.status_code == 200
        payments = resp.get_json()["payments"]
        assert len(payments) == 1
        assert payments[0]["date"] == "2024-06-01T00:00:00Z"

    def test_list_rejects_bad_filters(self, client, auth_headers):
        assert client.get("/api/payments?from=yesterday", headers=auth_headers).status_code == 400
        assert client.get("/api/payments?sales_order_id=abc", headers=auth_headers).status_code == 400

    def test_outstanding(self, client, auth_headers, make_order):
        newer = make_order(invoiced=20, created_at=datetime(2024, 1, 2))
        older = make_order(invoiced=30, created_at=datetime(2024, 1, 1))

        resp = client.get("/api/payments/outstanding", headers=auth_headers)
        assert resp.status_code == 200
        balances = resp.get_json()["balances"]
        assert [b["sales_order_id"] for b in balances] == [older.id, newer.id]
        assert balances[0]["outstanding"] == 30.0
