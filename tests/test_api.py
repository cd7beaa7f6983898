"""End-to-end tests through the HTTP surface."""
import re

from app.core.security import create_access_token
from app.models.file_record import FileRecord, UploadStatus


def _create_order(client, headers, description="Stickers, 200 units"):
    response = client.post("/orders", json={"description": description}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _reserve(client, order_id, headers, **overrides):
    body = {"file_name": "model.stl", "file_size": 10000, "mime_type": "model/stl"}
    body.update(overrides)
    return client.post(f"/orders/{order_id}/upload-url", json=body, headers=headers)


def test_customer_upload_scenario(client, db, storage, customer, other_customer, auth_headers):
    p, q = auth_headers(customer), auth_headers(other_customer)

    order = _create_order(client, p)
    assert order["status"] == "RECEIVED"
    assert re.fullmatch(r"ORD-\d{4}-0001", order["order_number"])

    reserved = _reserve(client, order["id"], p)
    assert reserved.status_code == 201
    slot = reserved.json()
    assert slot["upload_url"]
    assert db.get(FileRecord, slot["file_id"]).status == UploadStatus.PENDING

    storage.put(slot["storage_key"])
    confirmed = client.post(f"/orders/{order['id']}/files/{slot['file_id']}/confirm", headers=p)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "COMPLETED"

    denied_confirm = client.post(f"/orders/{order['id']}/files/{slot['file_id']}/confirm", headers=q)
    assert denied_confirm.status_code == 403
    assert denied_confirm.json()["code"] == "forbidden"

    denied_reserve = _reserve(client, order["id"], q)
    assert denied_reserve.status_code == 403


def test_confirm_missing_object_reports_validation_failed(client, db, customer, auth_headers):
    headers = auth_headers(customer)
    order = _create_order(client, headers)
    slot = _reserve(client, order["id"], headers).json()

    response = client.post(f"/orders/{order['id']}/files/{slot['file_id']}/confirm", headers=headers)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_failed"
    assert body["retriable"] is False
    assert db.get(FileRecord, slot["file_id"]).status == UploadStatus.FAILED


def test_requests_without_token_are_rejected(client):
    response = client.post("/orders", json={"description": "x"})

    assert response.status_code == 401
    assert response.json()["code"] == "unauthenticated"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_is_rejected(client):
    response = client.get("/orders", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_token_for_unknown_user_is_rejected(client):
    token = create_access_token({"sub": "9999"})
    response = client.get("/orders", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_error_payload_carries_request_id(client, customer, auth_headers):
    response = client.get(
        "/orders/does-not-exist",
        headers={**auth_headers(customer), "X-Request-Id": "req-123"},
    )

    assert response.status_code == 404
    assert response.headers["X-Request-Id"] == "req-123"
    assert response.json() == {
        "code": "not_found",
        "message": "Order not found",
        "retriable": False,
        "request_id": "req-123",
    }


def test_bad_upload_metadata_is_a_validation_failure(client, customer, auth_headers):
    headers = auth_headers(customer)
    order = _create_order(client, headers)

    response = _reserve(client, order["id"], headers, file_size=0)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_failed"


def test_malformed_body_is_a_request_validation_error(client, customer, auth_headers):
    headers = auth_headers(customer)
    order = _create_order(client, headers)

    response = client.post(f"/orders/{order['id']}/upload-url", json={"file_name": "a"}, headers=headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_ownership_mismatch(client, storage, customer, auth_headers):
    headers = auth_headers(customer)
    first = _create_order(client, headers)
    second = _create_order(client, headers, "Banners")
    slot = _reserve(client, first["id"], headers).json()
    storage.put(slot["storage_key"])

    response = client.post(f"/orders/{second['id']}/files/{slot['file_id']}/confirm", headers=headers)

    assert response.status_code == 400
    assert response.json()["code"] == "ownership_mismatch"


def test_customers_only_see_their_own_orders(client, customer, other_customer, staff, auth_headers):
    mine = _create_order(client, auth_headers(customer), "Mine")
    _create_order(client, auth_headers(other_customer), "Theirs")

    own = client.get("/orders", headers=auth_headers(customer)).json()
    everything = client.get("/orders", headers=auth_headers(staff)).json()

    assert [o["id"] for o in own] == [mine["id"]]
    assert len(everything) == 2
    assert client.get(f"/orders/{mine['id']}", headers=auth_headers(other_customer)).status_code == 403


def test_staff_can_search_orders(client, customer, staff, auth_headers):
    _create_order(client, auth_headers(customer), "Wedding invitations")
    _create_order(client, auth_headers(customer), "Poster")

    response = client.get("/orders", params={"search": "wedding"}, headers=auth_headers(staff))

    assert [o["description"] for o in response.json()] == ["Wedding invitations"]


def test_status_advances_one_step_at_a_time(client, customer, staff, auth_headers):
    order = _create_order(client, auth_headers(customer))
    url = f"/orders/{order['id']}/status"

    skipped = client.patch(url, json={"status": "READY_FOR_PRINT"}, headers=auth_headers(staff))
    assert skipped.status_code == 400

    by_customer = client.patch(url, json={"status": "REVIEWING"}, headers=auth_headers(customer))
    assert by_customer.status_code == 403

    advanced = client.patch(
        url, json={"status": "REVIEWING", "note": "Checking bleed"}, headers=auth_headers(staff)
    )
    assert advanced.status_code == 200
    assert advanced.json()["status"] == "REVIEWING"

    detail = client.get(f"/orders/{order['id']}", headers=auth_headers(customer)).json()
    assert [(h["from_status"], h["to_status"]) for h in detail["status_history"]] == [
        ("RECEIVED", "REVIEWING")
    ]
    assert detail["status_history"][0]["note"] == "Checking bleed"

    late_upload = _reserve(client, order["id"], auth_headers(customer))
    assert late_upload.status_code == 403


def test_customer_confirm_of_processed_file_without_body_is_forbidden(
    client, db, storage, customer, staff, auth_headers
):
    order = _create_order(client, auth_headers(customer))
    slot = _reserve(
        client, order["id"], auth_headers(staff),
        file_name="proof.pdf", mime_type="application/pdf", file_type="staff_processed",
    ).json()
    storage.put(slot["storage_key"])

    response = client.post(
        f"/orders/{order['id']}/files/{slot['file_id']}/confirm", headers=auth_headers(customer)
    )

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"
    assert db.get(FileRecord, slot["file_id"]).status == UploadStatus.PENDING


def test_non_owner_with_bad_metadata_is_forbidden(client, customer, other_customer, auth_headers):
    order = _create_order(client, auth_headers(customer))

    response = _reserve(client, order["id"], auth_headers(other_customer), file_name="", file_size=0)

    assert response.status_code == 403


def test_processed_files_are_hidden_from_customers(client, storage, customer, staff, auth_headers):
    order = _create_order(client, auth_headers(customer))
    slot = _reserve(
        client, order["id"], auth_headers(staff),
        file_name="proof.pdf", mime_type="application/pdf",
        file_type="staff_processed", notes="Ready for approval",
    ).json()
    storage.put(slot["storage_key"])
    confirm = client.post(
        f"/orders/{order['id']}/files/{slot['file_id']}/confirm",
        json={"file_type": "staff_processed"},
        headers=auth_headers(staff),
    )
    assert confirm.status_code == 200

    staff_view = client.get(f"/orders/{order['id']}", headers=auth_headers(staff)).json()
    customer_view = client.get(f"/orders/{order['id']}", headers=auth_headers(customer)).json()
    assert [f["file_name"] for f in staff_view["processed_files"]] == ["proof.pdf"]
    assert customer_view["processed_files"] == []

    links = client.get(
        f"/orders/{order['id']}/processed-files/download-urls", headers=auth_headers(staff)
    )
    assert links.status_code == 200
    assert [f["file_name"] for f in links.json()["files"]] == ["proof.pdf"]

    denied = client.get(
        f"/orders/{order['id']}/processed-files/download-urls", headers=auth_headers(customer)
    )
    assert denied.status_code == 403


def test_order_detail_lists_completed_files_only(client, storage, customer, auth_headers):
    headers = auth_headers(customer)
    order = _create_order(client, headers)
    done = _reserve(client, order["id"], headers, file_name="done.pdf").json()
    _reserve(client, order["id"], headers, file_name="abandoned.pdf")
    storage.put(done["storage_key"])
    client.post(f"/orders/{order['id']}/files/{done['file_id']}/confirm", headers=headers)

    detail = client.get(f"/orders/{order['id']}", headers=headers).json()

    assert [f["file_name"] for f in detail["files"]] == ["done.pdf"]


def test_download_links_for_customer_files(client, storage, customer, auth_headers):
    headers = auth_headers(customer)
    order = _create_order(client, headers)

    empty = client.get(f"/orders/{order['id']}/files/download-urls", headers=headers)
    assert empty.status_code == 200
    assert empty.json() == {"files": []}

    slot = _reserve(client, order["id"], headers).json()
    storage.put(slot["storage_key"])
    client.post(f"/orders/{order['id']}/files/{slot['file_id']}/confirm", headers=headers)

    links = client.get(f"/orders/{order['id']}/files/download-urls", headers=headers).json()["files"]
    assert len(links) == 1
    assert links[0]["file_id"] == slot["file_id"]
    assert slot["storage_key"] in links[0]["url"]


def test_storage_fault_is_retriable(client, storage, customer, auth_headers):
    headers = auth_headers(customer)
    order = _create_order(client, headers)
    storage.unreachable = True

    response = _reserve(client, order["id"], headers)

    assert response.status_code == 500
    assert response.json()["code"] == "storage_fault"
    assert response.json()["retriable"] is True


def test_storage_check_for_staff(client, staff, auth_headers):
    response = client.get("/admin/storage/check", headers=auth_headers(staff))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["upload_url_generation"] == "PASS"
    assert body["file_verification"] == "PASS"
    assert body["bucket"] == "test-bucket"
    assert body["credentials_set"] is True
    assert body["test_storage_key"].startswith("uploads/storage-check/")
    assert "test-secret" not in response.text


def test_storage_check_reports_failures(client, storage, staff, auth_headers):
    storage.unreachable = True

    body = client.get("/admin/storage/check", headers=auth_headers(staff)).json()

    assert body["success"] is False
    assert body["upload_url_generation"].startswith("FAIL")
    assert body["file_verification"] == "SKIPPED"


def test_storage_check_is_staff_only(client, customer, auth_headers):
    response = client.get("/admin/storage/check", headers=auth_headers(customer))
    assert response.status_code == 403


def test_health(client):
    assert client.get("/").json()["status"] == "running"
