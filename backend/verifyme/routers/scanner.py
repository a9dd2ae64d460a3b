# backend/verifyme/routers/scanner.py
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from verifyme.dependencies import get_scan_desk
from verifyme.models.users import AdminIdentity
from verifyme.routers.auth import get_current_admin
from verifyme.scanner.desk import ScanDesk

router = APIRouter(prefix="/scanner", tags=["Scanner"])


class StartRequest(BaseModel):
    facing_mode: Literal["environment", "user"] = "environment"


class ManualEntryRequest(BaseModel):
    text: str


# ==================== START CAMERA ====================
@router.post("/start")
async def start_scanner(
    data: StartRequest | None = None,
    admin: AdminIdentity = Depends(get_current_admin),
    desk: ScanDesk = Depends(get_scan_desk),
):
    """Open the desk camera and scan until one QR code is read"""
    await desk.start(admin, data.facing_mode if data else "environment")
    return {"msg": "Scanner Started", "description": "Point camera at QR code", **desk.status()}


# ==================== STOP CAMERA ====================
@router.post("/stop")
async def stop_scanner(
    admin: AdminIdentity = Depends(get_current_admin),
    desk: ScanDesk = Depends(get_scan_desk),
):
    desk.stop()
    return {"msg": "Scanner stopped", **desk.status()}


# ==================== MANUAL ENTRY ====================
@router.post("/manual")
async def manual_entry(
    data: ManualEntryRequest,
    admin: AdminIdentity = Depends(get_current_admin),
    desk: ScanDesk = Depends(get_scan_desk),
):
    """Type a student id instead of scanning"""
    student = await desk.submit(admin, data.text)
    return {
        "msg": "QR Code Scanned Successfully!",
        "description": f"Found student: {student.full_name}",
        "student": student.to_public(),
    }


# ==================== STATUS ====================
@router.get("/status")
async def scanner_status(
    admin: AdminIdentity = Depends(get_current_admin),
    desk: ScanDesk = Depends(get_scan_desk),
):
    """Capture state and the outcome of the last scan"""
    return desk.status()
