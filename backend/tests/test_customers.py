"""Customer service and API tests."""

import pytest

from orderdesk.services import customer_service
from orderdesk.validation import NotFoundError, ValidationError


class TestCustomerService:

    def test_create_normalizes_fields(self, db_session):
        customer, warnings = customer_service.create_customer({
            "business_name": "  Acme Jewelers ",
            "contact_name": " Dana ",
            "phone": "(555) 010-2000",
            "email": " Dana@Acme.COM ",
            "city": "Austin",
            "state": "tx",
            "zip": " 78701 ",
        })
        assert customer.business_name == "Acme Jewelers"
        assert customer.phone == "5550102000"
        assert customer.email == "dana@acme.com"
        assert customer.state == "TX"
        assert customer.zip == "78701"
        assert warnings == []

    def test_business_name_required(self, db_session):
        with pytest.raises(ValidationError, match="business_name is required"):
            customer_service.create_customer({"business_name": "   "})

    def test_soft_duplicate_warnings(self, db_session):
        customer_service.create_customer({"business_name": "Acme", "phone": "555-1000", "email": "a@acme.com"})
        _, warnings = customer_service.create_customer({
            "business_name": "Acme", "phone": "5551000", "email": "A@ACME.com",
        })
        assert warnings == ["business_name", "phone", "email"]

    def test_blank_phone_and_email_never_warn(self, db_session):
        customer_service.create_customer({"business_name": "One"})
        _, warnings = customer_service.create_customer({"business_name": "Two"})
        assert warnings == []

    def test_update_excludes_self_from_duplicates(self, db_session):
        customer, _ = customer_service.create_customer({"business_name": "Solo", "phone": "1"})
        updated, warnings = customer_service.update_customer(customer.id, {"business_name": "Solo", "phone": "1", "city": "Reno"})
        assert warnings == []
        assert updated.city == "Reno"

    def test_update_missing(self, db_session):
        with pytest.raises(NotFoundError):
            customer_service.update_customer(404, {"business_name": "X"})

    def test_list_search_and_order(self, db_session):
        first, _ = customer_service.create_customer({"business_name": "Blue Gems", "email": "x@blue.com"})
        second, _ = customer_service.create_customer({"business_name": "Red Stones", "contact_name": "Blue Smith"})
        customer_service.create_customer({"business_name": "Green"})

        found = customer_service.list_customers("blue")
        assert {c.id for c in found} == {first.id, second.id}
        assert len(customer_service.list_customers()) == 3


class TestCustomerRoutes:

    def test_create_get_update(self, client, auth_headers):
        resp = client.post("/api/customers", json={"business_name": "Route Co"}, headers=auth_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        customer_id = body["customer"]["id"]
        assert body["warnings"] == []

        resp = client.get(f"/api/customers/{customer_id}", headers=auth_headers)
        assert resp.get_json()["customer"]["business_name"] == "Route Co"

        resp = client.put(f"/api/customers/{customer_id}", json={"business_name": "Route Co", "state": "ca"},
                          headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["customer"]["state"] == "CA"

    def test_errors(self, client, auth_headers):
        assert client.post("/api/customers", json={}, headers=auth_headers).status_code == 400
        assert client.get("/api/customers/999", headers=auth_headers).status_code == 404
        assert client.put("/api/customers/999", json={"business_name": "x"}, headers=auth_headers).status_code == 404

    def test_list_query(self, client, auth_headers, make_customer):
        make_customer("Alpha")
        make_customer("Beta")
        resp = client.get("/api/customers?q=alp", headers=auth_headers)
        assert [c["business_name"] for c in resp.get_json()["customers"]] == ["Alpha"]
