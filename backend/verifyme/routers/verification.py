# backend/verifyme/routers/verification.py
import asyncio

from fastapi import APIRouter, Depends, File, Query, UploadFile

from verifyme.dependencies import get_store, get_verification_service
from verifyme.errors import EmptyInput
from verifyme.models.scan_logs import ScanRequest
from verifyme.models.students import StatusUpdateRequest
from verifyme.models.users import AdminIdentity
from verifyme.routers.auth import get_current_admin
from verifyme.scanner.decoder import decode_image_bytes
from verifyme.services.verification import VerificationService
from verifyme.store import RecordStore

router = APIRouter(prefix="/verification", tags=["Verification"])


# ==================== SCAN / MANUAL ENTRY ====================
@router.post("/scan")
async def scan_student(
    data: ScanRequest,
    admin: AdminIdentity = Depends(get_current_admin),
    verification: VerificationService = Depends(get_verification_service),
):
    """Resolve scanned or typed text to a student record"""
    student = await verification.scan(data.raw_text, admin)
    return {
        "msg": "QR Code Scanned Successfully!",
        "description": f"Found student: {student.full_name}",
        "student": student.to_public(),
    }


# ==================== SCAN FROM IMAGE ====================
@router.post("/scan-image")
async def scan_student_image(
    image: UploadFile = File(...),
    admin: AdminIdentity = Depends(get_current_admin),
    verification: VerificationService = Depends(get_verification_service),
):
    """Decode the QR code in an uploaded photo and look the student up"""
    content = await image.read()
    if not content:
        raise EmptyInput()

    raw_text = await asyncio.to_thread(decode_image_bytes, content)
    student = await verification.scan(raw_text, admin)
    return {
        "msg": "QR Code Scanned Successfully!",
        "description": f"Found student: {student.full_name}",
        "raw_text": raw_text,
        "student": student.to_public(),
    }


# ==================== UPDATE STATUS ====================
@router.put("/{student_id}/status")
async def update_status(
    student_id: str,
    data: StatusUpdateRequest,
    admin: AdminIdentity = Depends(get_current_admin),
    verification: VerificationService = Depends(get_verification_service),
):
    """Set Pending, Verified or Rejected"""
    student = await verification.set_status(student_id, data.status, admin)
    return {
        "msg": "Status Updated",
        "description": f"Student status updated to {student.status.value}",
        "student": student.to_public(),
    }


# ==================== SCAN LOGS ====================
@router.get("/logs")
async def scan_logs(
    student_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    admin: AdminIdentity = Depends(get_current_admin),
    store: RecordStore = Depends(get_store),
):
    """Recent scan audit entries, optionally for one student"""
    entries = await store.list_scan_logs(student_id, limit)
    return {
        "total": len(entries),
        "logs": [e.to_public() for e in entries],
    }
