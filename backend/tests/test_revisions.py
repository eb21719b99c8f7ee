"""Revision upload and listing."""

import io


class TestRevisionRoutes:

    def test_upload_and_list(self, client, auth_headers, make_order):
        order = make_order()
        resp = client.post(
            "/api/revisions/upload",
            data={
                "sales_order_id": str(order.id),
                "note": "  second pass ",
                "file": (io.BytesIO(b"%PDF-1.4"), "Design V2.pdf"),
            },
            content_type="multipart/form-data",
            headers=auth_headers,
        )
        assert resp.status_code == 201
        revision = resp.get_json()["revision"]
        assert revision["note"] == "second pass"
        assert revision["status"] == "pending"
        assert revision["file_path"].endswith("_design_v2.pdf")
        assert revision["file_url"].startswith("/files/")

        listed = client.get(f"/api/revisions?sales_order_id={order.id}", headers=auth_headers)
        assert listed.status_code == 200
        assert [r["id"] for r in listed.get_json()["revisions"]] == [revision["id"]]

        served = client.get(revision["file_url"])
        assert served.status_code == 200
        assert served.data == b"%PDF-1.4"

    def test_upload_requires_file(self, client, auth_headers, make_order):
        order = make_order()
        resp = client.post("/api/revisions/upload", data={"sales_order_id": str(order.id)},
                           content_type="multipart/form-data", headers=auth_headers)
        assert resp.status_code == 400

    def test_upload_unknown_order(self, client, auth_headers):
        resp = client.post(
            "/api/revisions/upload",
            data={"sales_order_id": "999", "file": (io.BytesIO(b"x"), "a.txt")},
            content_type="multipart/form-data",
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_list_requires_order(self, client, auth_headers):
        assert client.get("/api/revisions", headers=auth_headers).status_code == 400

    def test_traversal_blocked_on_file_route(self, client, db_session):
        assert client.get("/files/../conftest.py").status_code in (400, 404)
