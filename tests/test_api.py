from datetime import datetime, timedelta

import pytest

from db.models.material_request import RequestStatus
from dao import quota as quota_dao

PASSWORD = "123456"


def login(client, username, password=PASSWORD):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def test_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_requires_login(client, users):
    resp = client.get("/api/requests")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"


def test_login_and_me(client, users):
    assert login(client, "nhanvien", "sai").status_code == 401
    resp = login(client, "nhanvien")
    assert resp.status_code == 200
    assert resp.get_json()["role"] == "nhan_vien_mh"
    assert client.get("/api/auth/me").get_json()["username"] == "nhanvien"


def test_role_guard(client, users):
    login(client, "ncc1")
    resp = client.get("/api/requests")
    assert resp.status_code == 403


def test_domain_errors_render_as_json(client, users):
    login(client, "nhanvien")
    resp = client.get("/api/requests/999")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["error"] == "NOT_FOUND"
    assert body["details"]["entity"] == "MaterialRequest"


def test_create_request_returns_quota_warnings(client, users, project, materials):
    quota_dao.upsert_quota(project.id, materials["cement"].id, 100)
    login(client, "nhanvien")
    resp = client.post(
        "/api/requests",
        json={
            "project_id": project.id,
            "priority": "high",
            "items": [{"material_id": materials["cement"].id, "quantity": 150}],
        },
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["code"] == "YC00001"
    assert body["current_level"] == 1
    assert body["quota_warnings"][0]["exceeded"] == 50


def test_check_quota_endpoint(client, users, project, materials):
    quota_dao.upsert_quota(project.id, materials["cement"].id, 5000)
    login(client, "nhanvien")
    resp = client.post(
        "/api/requests/check-quota",
        json={
            "project_id": project.id,
            "items": [{"material_id": materials["cement"].id, "quantity": 3000}],
        },
    )
    assert resp.get_json() == {"has_violations": False, "violations": []}


def test_wrong_level_approver_gets_403(client, users, make_request, materials):
    req = make_request([{"material_id": materials["steel"].id, "quantity": 10}])
    login(client, "giamdoc")
    resp = client.post(f"/api/requests/{req.id}/approve", json={"status": "approved"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "PERMISSION_DENIED"


def test_procurement_flow_over_http(client, users, make_request, materials, suppliers, mailer):
    req = make_request([{"material_id": materials["steel"].id, "quantity": 2000}])

    for username in ("truongphong", "ketoan", "giamdoc"):
        login(client, username)
        resp = client.post(f"/api/requests/{req.id}/approve", json={"status": "approved"})
        assert resp.status_code == 200, resp.get_json()
    assert req.status == RequestStatus.APPROVED

    login(client, "truongphong")
    analysis = client.get(f"/api/requests/{req.id}/analyze").get_json()
    assert analysis["items"][0]["need_to_buy"] == 500

    deadline = (datetime.utcnow() + timedelta(days=7)).isoformat()
    resp = client.post(
        "/api/rfqs",
        json={"request_id": req.id, "supplier_ids": [suppliers[0].id], "deadline": deadline},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "VALIDATION_ERROR"

    resp = client.post(
        "/api/rfqs",
        json={
            "request_id": req.id,
            "supplier_ids": [s.id for s in suppliers[:2]],
            "deadline": deadline,
        },
    )
    assert resp.status_code == 201
    rfq = resp.get_json()
    assert rfq["items"][0]["quantity"] == 500

    quotation_ids = []
    for username, price in (("ncc1", 17000), ("ncc2", 16800)):
        login(client, username)
        resp = client.post(
            "/api/quotations",
            json={
                "rfq_id": rfq["id"],
                "supplier_id": suppliers[2].id,  # bị bỏ qua, lấy theo tài khoản
                "items": [
                    {"material_id": materials["steel"].id, "quantity": 500, "unit_price": price}
                ],
                "delivery_time": 5,
            },
        )
        assert resp.status_code == 201, resp.get_json()
        quotation_ids.append(resp.get_json()["id"])
    assert resp.get_json()["supplier_id"] == suppliers[1].id

    login(client, "truongphong")
    resp = client.post(f"/api/quotations/{quotation_ids[0]}/select")
    assert resp.get_json()["status"] == "selected"

    resp = client.post(
        "/api/purchase-orders",
        json={
            "quotation_id": quotation_ids[0],
            "delivery_address": "Công trường DA001",
            "delivery_date": (datetime.utcnow() + timedelta(days=5)).date().isoformat(),
        },
    )
    assert resp.status_code == 201
    po = resp.get_json()
    assert po["grand_total"] == 9350000.0

    for username in ("truongphong", "ketoan", "giamdoc"):
        login(client, username)
        resp = client.post(f"/api/purchase-orders/{po['id']}/approve", json={"status": "approved"})
        assert resp.status_code == 200
    assert resp.get_json()["purchase_order"]["status"] == "approved"

    login(client, "truongphong")
    resp = client.post(f"/api/purchase-orders/{po['id']}/send")
    assert resp.get_json()["status"] == "sent"
    assert mailer.of_kind("po")

    resp = client.post(
        "/api/tracking", json={"po_id": po["id"], "status": "arrived", "location": "Công trường"}
    )
    assert resp.status_code == 201
    detail = client.get(f"/api/purchase-orders/{po['id']}").get_json()
    assert detail["status"] == "delivered"
    assert [t["status"] for t in detail["trackings"]] == ["arrived"]


def test_notifications_endpoint(client, users, approved_request):
    approved_request(10)
    login(client, "nhanvien")
    body = client.get("/api/notifications").get_json()
    assert body["unread"] == 1
    nid = body["items"][0]["id"]
    assert client.post(f"/api/notifications/{nid}/read").get_json()["read"] is True
    assert client.get("/api/notifications").get_json()["unread"] == 0


@pytest.mark.parametrize("path", ["/api/payments", "/api/quotas", "/api/stock/issues"])
def test_supplier_blocked_from_internal_lists(client, users, path):
    login(client, "ncc1")
    assert client.get(path).status_code == 403


def test_tracking_route_reads_string_false(client, users, approved_po):
    po = approved_po()
    login(client, "truongphong")
    resp = client.post(
        "/api/tracking", json={"po_id": po.id, "status": "shipped", "is_delayed": "false"}
    )
    assert resp.status_code == 201
    assert resp.get_json()["is_delayed"] is False
