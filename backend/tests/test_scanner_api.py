import asyncio

import pytest
from httpx import AsyncClient

from verifyme.errors import CameraUnavailable, LookupFailed, PermissionDenied


async def poll_until_decoded(client: AsyncClient, headers, attempts=200) -> dict:
    for _ in range(attempts):
        status = (await client.get("/api/scanner/status", headers=headers)).json()
        if status["state"] == "decoded":
            return status
        await asyncio.sleep(0.005)
    raise AssertionError("scanner never decoded a code")


@pytest.mark.asyncio
async def test_camera_scan_finds_student(client: AsyncClient, camera, student, store, auth_headers):
    camera.frames.extend([None, student.id])

    response = await client.post(
        "/api/scanner/start", json={"facing_mode": "user"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["state"] == "capturing"
    assert camera.opened_with == "user"

    status = await poll_until_decoded(client, auth_headers)

    assert status["payload"] == student.id
    assert status["student"]["id"] == student.id
    assert status["operator"] == "admin@verifyme.local"
    assert status["error"] is None
    assert not camera.is_open
    assert len(store.scan_logs) == 1


@pytest.mark.asyncio
async def test_start_defaults_to_rear_camera(client: AsyncClient, camera, auth_headers):
    response = await client.post("/api/scanner/start", headers=auth_headers)

    assert response.status_code == 200
    assert camera.opened_with == "environment"


@pytest.mark.asyncio
async def test_camera_scan_of_foreign_code(client: AsyncClient, camera, auth_headers):
    camera.frames.append("WIFI:S:guest;T:WPA;P:secret;;")

    await client.post("/api/scanner/start", headers=auth_headers)
    status = await poll_until_decoded(client, auth_headers)

    assert status["student"] is None
    assert status["error"]["code"] == "INVALID_FORMAT"


@pytest.mark.asyncio
@pytest.mark.parametrize("error, status_code, code", [
    (PermissionDenied("/dev/video0"), 403, "CAMERA_PERMISSION_DENIED"),
    (CameraUnavailable(), 503, "CAMERA_UNAVAILABLE"),
])
async def test_camera_errors(client: AsyncClient, camera, auth_headers, error, status_code, code):
    camera.error = error

    response = await client.post("/api/scanner/start", headers=auth_headers)

    assert response.status_code == status_code
    assert response.json()["code"] == code
    status = (await client.get("/api/scanner/status", headers=auth_headers)).json()
    assert status["state"] == "idle"


@pytest.mark.asyncio
async def test_stop_scanner(client: AsyncClient, camera, auth_headers):
    await client.post("/api/scanner/start", headers=auth_headers)

    response = await client.post("/api/scanner/stop", headers=auth_headers)

    assert response.json()["state"] == "idle"
    assert not camera.is_open


@pytest.mark.asyncio
async def test_manual_entry(client: AsyncClient, student, auth_headers):
    response = await client.post(
        "/api/scanner/manual", json={"text": f" {student.id} "}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["student"]["id"] == student.id


@pytest.mark.asyncio
async def test_manual_entry_blank(client: AsyncClient, auth_headers):
    response = await client.post("/api/scanner/manual", json={"text": "  "}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "QR code appears to be empty"


@pytest.mark.asyncio
async def test_scanner_requires_admin(client: AsyncClient):
    response = await client.post("/api/scanner/start")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_camera_scan_store_fault_is_reported(client: AsyncClient, camera, store, student,
                                                   auth_headers):
    store.fail_query = True
    camera.frames.append(student.id)

    await client.post("/api/scanner/start", headers=auth_headers)
    status = await poll_until_decoded(client, auth_headers)

    assert status["student"] is None
    assert status["error"]["code"] == "LOOKUP_FAILED"
    assert store.scan_logs == []


@pytest.mark.asyncio
async def test_desk_records_unexpected_lookup_errors(desk, verification, student):
    async def broken_scan(raw_text, admin):
        raise RuntimeError("driver crashed")

    verification.scan = broken_scan

    with pytest.raises(LookupFailed):
        await desk.submit(None, student.id)

    assert desk.status()["error"]["code"] == "LOOKUP_FAILED"
