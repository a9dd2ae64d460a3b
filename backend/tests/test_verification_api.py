import json

import pytest
from httpx import AsyncClient

from verifyme.utils.qr_generator import generate_qr_png


@pytest.mark.asyncio
async def test_scan_json_payload(client: AsyncClient, store, student, auth_headers):
    raw = json.dumps({"studentId": student.id, "name": student.full_name})

    response = await client.post(
        "/api/verification/scan", json={"raw_text": raw}, headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["msg"] == "QR Code Scanned Successfully!"
    assert data["student"]["id"] == student.id
    assert store.scan_logs[0].raw_qr_data == raw
    assert store.scan_logs[0].admin_email == "admin@verifyme.local"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw, status_code, code", [
    ("", 400, "EMPTY_INPUT"),
    ("hello there", 422, "INVALID_FORMAT"),
    ("Zz" * 10, 404, "STUDENT_NOT_FOUND"),
])
async def test_scan_errors(client: AsyncClient, store, auth_headers, raw, status_code, code):
    response = await client.post(
        "/api/verification/scan", json={"raw_text": raw}, headers=auth_headers
    )

    assert response.status_code == status_code
    body = response.json()
    assert body["code"] == code
    assert body["message"]
    assert store.scan_logs == []


@pytest.mark.asyncio
async def test_scan_requires_admin(client: AsyncClient, student):
    response = await client.post("/api/verification/scan", json={"raw_text": student.id})

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_scan_uploaded_image(client: AsyncClient, student, auth_headers):
    files = {"image": ("card.png", generate_qr_png(student.id), "image/png")}

    response = await client.post("/api/verification/scan-image", files=files, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["raw_text"] == student.id
    assert response.json()["student"]["fullName"] == student.full_name


@pytest.mark.asyncio
async def test_scan_image_without_code(client: AsyncClient, auth_headers):
    files = {"image": ("notes.txt", b"just some text", "text/plain")}

    response = await client.post("/api/verification/scan-image", files=files, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "NO_CODE_DETECTED"


@pytest.mark.asyncio
async def test_scan_empty_image(client: AsyncClient, auth_headers):
    files = {"image": ("empty.png", b"", "image/png")}

    response = await client.post("/api/verification/scan-image", files=files, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "EMPTY_INPUT"


@pytest.mark.asyncio
async def test_verify_student(client: AsyncClient, student, auth_headers):
    response = await client.put(
        f"/api/verification/{student.id}/status",
        json={"status": "Verified"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["msg"] == "Status Updated"
    assert data["student"]["status"] == "Verified"
    assert data["student"]["verifiedBy"] == "admin@verifyme.local"
    assert data["student"]["verifiedAt"] is not None


@pytest.mark.asyncio
async def test_reject_clears_verification(client: AsyncClient, student, auth_headers):
    url = f"/api/verification/{student.id}/status"
    await client.put(url, json={"status": "Verified"}, headers=auth_headers)

    response = await client.put(url, json={"status": "Rejected"}, headers=auth_headers)

    student_json = response.json()["student"]
    assert student_json["status"] == "Rejected"
    assert student_json["verifiedAt"] is None
    assert student_json["verifiedBy"] is None


@pytest.mark.asyncio
async def test_unknown_status_value(client: AsyncClient, student, auth_headers):
    response = await client.put(
        f"/api/verification/{student.id}/status",
        json={"status": "Approved"},
        headers=auth_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_status_update_failure(client: AsyncClient, store, student, auth_headers):
    store.fail_update = True

    response = await client.put(
        f"/api/verification/{student.id}/status",
        json={"status": "Verified"},
        headers=auth_headers,
    )

    assert response.status_code == 503
    assert response.json()["message"] == "Failed to update student status. Please try again."
    assert store.students[student.id].status.value == "Pending"


@pytest.mark.asyncio
async def test_status_of_missing_student(client: AsyncClient, auth_headers):
    response = await client.put(
        f"/api/verification/{'Zz' * 10}/status",
        json={"status": "Verified"},
        headers=auth_headers,
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_scan_logs_newest_first(client: AsyncClient, store, student, auth_headers):
    other = store.add_student(full_name="Bola Ade")
    for raw in (student.id, other.id, student.id):
        await client.post("/api/verification/scan", json={"raw_text": raw}, headers=auth_headers)

    response = await client.get(
        "/api/verification/logs", params={"student_id": student.id}, headers=auth_headers
    )

    data = response.json()
    assert data["total"] == 2
    assert all(entry["studentId"] == student.id for entry in data["logs"])
    assert data["logs"][0]["id"] > data["logs"][1]["id"]
