"""Sales order service and API tests."""

from datetime import datetime

import pytest

from orderdesk.services import sales_order_service
from orderdesk.validation import NotFoundError, ValidationError


class TestSalesOrderService:

    def test_create_with_defaults(self, db_session, make_customer):
        customer = make_customer()
        order = sales_order_service.create_sales_order({
            "customer_id": customer.id, "so_code": " SO-1 ", "status": "new",
        })
        assert order.so_code == "SO-1"
        assert order.priority == "P2"
        assert order.lead_time_days == 28
        assert order.started_at is None

    @pytest.mark.parametrize("payload,message", [
        ({"so_code": "SO-1", "status": "new"}, "customer_id is required"),
        ({"customer_id": 1, "status": "new"}, "so_code is required"),
        ({"customer_id": 1, "so_code": "SO-1"}, "status is required"),
        ({"customer_id": 1, "so_code": "SO-1", "status": "new", "lead_time_days": -1}, "cannot be negative"),
        ({"customer_id": 1, "so_code": "SO-1", "status": "new", "started_at": "soon"}, "invalid started_at"),
    ])
    def test_create_validation(self, db_session, payload, message):
        with pytest.raises(ValidationError, match=message):
            sales_order_service.create_sales_order(payload)

    def test_unknown_customer(self, db_session):
        with pytest.raises(ValidationError, match="customer not found"):
            sales_order_service.create_sales_order({"customer_id": 77, "so_code": "SO-1", "status": "new"})

    def test_duplicate_so_code(self, db_session, make_customer):
        customer = make_customer()
        payload = {"customer_id": customer.id, "so_code": "SO-9", "status": "new"}
        sales_order_service.create_sales_order(payload)
        with pytest.raises(ValidationError, match="already exists"):
            sales_order_service.create_sales_order(payload)

    def test_partial_update(self, db_session, make_order):
        order = make_order(priority="P1", lead_time_days=10)
        updated = sales_order_service.update_sales_order(order.id, {
            "status": "in_production", "started_at": "2024-02-01T08:00:00Z",
        })
        assert updated.status == "in_production"
        assert updated.priority == "P1"
        assert updated.lead_time_days == 10
        assert updated.started_at == datetime(2024, 2, 1, 8, 0)

        cleared = sales_order_service.update_sales_order(order.id, {"started_at": None})
        assert cleared.started_at is None
        assert cleared.status == "in_production"

    @pytest.mark.parametrize("payload", [{"status": "  "}, {"priority": ""}, {"lead_time_days": -3}])
    def test_update_rejects_empty_or_negative(self, db_session, make_order, payload):
        order = make_order()
        with pytest.raises(ValidationError):
            sales_order_service.update_sales_order(order.id, payload)

    def test_update_missing(self, db_session):
        with pytest.raises(NotFoundError):
            sales_order_service.update_sales_order(5, {"status": "x"})

    def test_list_filters(self, db_session, make_customer, make_order):
        acme = make_customer("Acme")
        a1 = make_order(customer=acme, status="new")
        a2 = make_order(customer=acme, status="done")
        make_order(status="new")

        assert [o.id for o in sales_order_service.list_sales_orders(customer_id=acme.id)] == [a2.id, a1.id]
        assert [o.id for o in sales_order_service.list_sales_orders(customer_id=acme.id, status="new")] == [a1.id]


class TestSalesOrderRoutes:

    def test_create_and_get(self, client, auth_headers, make_customer):
        customer = make_customer()
        resp = client.post("/api/sales-orders", json={
            "customer_id": customer.id, "so_code": "SO-42", "status": "new", "lead_time_days": 0,
        }, headers=auth_headers)
        assert resp.status_code == 201
        order = resp.get_json()["sales_order"]
        assert order["lead_time_days"] == 0

        resp = client.get(f"/api/sales-orders/{order['id']}", headers=auth_headers)
        assert resp.get_json()["sales_order"]["so_code"] == "SO-42"
        assert client.get("/api/sales-orders/999", headers=auth_headers).status_code == 404

    def test_update_route(self, client, auth_headers, make_order):
        order = make_order()
        resp = client.put(f"/api/sales-orders/{order.id}", json={"priority": "P0"}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["sales_order"]["priority"] == "P0"
        assert client.put(f"/api/sales-orders/{order.id}", json={"status": ""},
                          headers=auth_headers).status_code == 400

    def test_balance_route(self, client, auth_headers, make_order):
        order = make_order(invoiced=120, credit=20)
        resp = client.get(f"/api/sales-orders/{order.id}/balance", headers=auth_headers)
        assert resp.status_code == 200
        balance = resp.get_json()["balance"]
        assert balance["outstanding_cents"] == 100_00
        assert balance["outstanding"] == 100.0
        assert balance["has_documents"] is True
        assert client.get("/api/sales-orders/999/balance", headers=auth_headers).status_code == 404
