# backend/verifyme/routers/students.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError

from verifyme import config
from verifyme.dependencies import get_image_uploader, get_store, get_verification_service
from verifyme.errors import NotFound, RegistrationInvalid
from verifyme.models.students import FACULTIES, StudentCreate, StudentRecord, StudentStatus, find_faculty
from verifyme.models.users import AdminIdentity
from verifyme.routers.auth import get_current_admin
from verifyme.services.resolver import is_canonical_id
from verifyme.services.verification import VerificationService
from verifyme.store import RecordStore
from verifyme.utils.csv_export import export_filename, students_to_csv
from verifyme.utils.id_card import render_id_card
from verifyme.utils.image_upload import CloudinaryUploader
from verifyme.utils.logger import get_logger
from verifyme.utils.qr_generator import generate_qr_png

router = APIRouter(prefix="/students", tags=["Students"])
logger = get_logger(__name__)


def filter_students(
    students: list[StudentRecord],
    search: str | None = None,
    status: StudentStatus | None = None,
) -> list[StudentRecord]:
    """Case-insensitive search over name, matric number and department"""
    filtered = students
    if search and search.strip():
        query = search.strip().lower()
        filtered = [
            s for s in filtered
            if query in s.full_name.lower()
            or query in s.matric_number.lower()
            or query in s.department.lower()
        ]
    if status is not None:
        filtered = [s for s in filtered if s.status == status]
    return filtered


async def _load_students(store: RecordStore, status: StudentStatus | None) -> list[StudentRecord]:
    if status is not None:
        return await store.query_students("status", status)
    return await store.list_students()


async def _get_or_404(store: RecordStore, student_id: str) -> StudentRecord:
    if not is_canonical_id(student_id):
        raise NotFound(student_id)
    student = await store.get_student(student_id)
    if not student:
        raise NotFound(student_id)
    return student


# ==================== FACULTIES ====================
@router.get("/faculties")
async def list_faculties():
    """Faculties and departments for the registration form"""
    return {"faculties": FACULTIES}


# ==================== REGISTER STUDENT ====================
@router.post("/register", status_code=201)
async def register_student(
    full_name: str = Form(""),
    matric_number: str = Form(""),
    faculty: str = Form(""),
    department: str = Form(""),
    photo: UploadFile | None = File(None),
    store: RecordStore = Depends(get_store),
    uploader: CloudinaryUploader = Depends(get_image_uploader),
):
    """Register a student: upload photo, create a Pending record, return its QR/ID card"""
    if photo is None or not photo.filename:
        raise RegistrationInvalid()

    try:
        data = StudentCreate(
            full_name=full_name,
            matric_number=matric_number,
            faculty=faculty,
            department=department,
        )
    except ValidationError:
        raise RegistrationInvalid()

    selected = find_faculty(data.faculty)
    if not selected:
        raise RegistrationInvalid("Unknown faculty")
    if data.department not in selected["departments"]:
        raise RegistrationInvalid(f"{data.department} is not a department of {selected['name']}")

    if not (photo.content_type or "").startswith("image/"):
        raise RegistrationInvalid("Photo must be an image file")
    content = await photo.read()
    if not content:
        raise RegistrationInvalid()
    if len(content) > config.MAX_PHOTO_BYTES:
        raise RegistrationInvalid("Photo is too large (max 5MB)")

    photo_url = await uploader.upload(content, photo.filename, photo.content_type)

    # the record stores the faculty display name, not the form id
    student = await store.create_student(
        data.model_copy(update={"faculty": selected["name"]}), photo_url
    )
    logger.info("Student registered: %s (%s)", student.id, student.matric_number)

    return {
        "msg": "Your ID card has been generated successfully",
        "student": student.to_public(),
        "qr_code_url": f"/api/students/{student.id}/qr.png",
        "id_card_url": f"/api/students/{student.id}/id-card.png",
    }


# ==================== LIST STUDENTS ====================
@router.get("/list")
async def list_students(
    search: str | None = Query(None),
    status: StudentStatus | None = Query(None),
    admin: AdminIdentity = Depends(get_current_admin),
    store: RecordStore = Depends(get_store),
    verification: VerificationService = Depends(get_verification_service),
):
    """List students, newest first, with search and status filter"""
    students = filter_students(await _load_students(store, status), search, status)
    for s in students:
        verification.view.put(s)

    counts = {st.value: 0 for st in StudentStatus}
    for s in students:
        counts[s.status.value] += 1

    return {
        "total": len(students),
        "counts": counts,
        "students": [s.to_public() for s in students],
    }


# ==================== EXPORT CSV ====================
@router.get("/export.csv")
async def export_students(
    search: str | None = Query(None),
    status: StudentStatus | None = Query(None),
    admin: AdminIdentity = Depends(get_current_admin),
    store: RecordStore = Depends(get_store),
):
    """Export the filtered student list as CSV"""
    students = filter_students(await _load_students(store, status), search, status)
    return Response(
        content=students_to_csv(students),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


# ==================== GET STUDENT ====================
@router.get("/{student_id}")
async def get_student(
    student_id: str,
    admin: AdminIdentity = Depends(get_current_admin),
    store: RecordStore = Depends(get_store),
):
    """Get single student details"""
    student = await _get_or_404(store, student_id)
    return student.to_public()


# ==================== QR CODE ====================
@router.get("/{student_id}/qr.png")
async def student_qr_code(student_id: str, store: RecordStore = Depends(get_store)):
    """QR code encoding the student id"""
    student = await _get_or_404(store, student_id)
    return Response(
        content=generate_qr_png(student.id),
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="student-qr-{student.id}.png"'},
    )


# ==================== ID CARD ====================
@router.get("/{student_id}/id-card.png")
async def student_id_card(
    student_id: str,
    store: RecordStore = Depends(get_store),
    uploader: CloudinaryUploader = Depends(get_image_uploader),
):
    """Printable ID card image"""
    student = await _get_or_404(store, student_id)
    photo_bytes = await uploader.fetch(student.photo_url)
    try:
        card = render_id_card(student, photo_bytes)
    except OSError as e:
        logger.error("ID card rendering failed for %s: %s", student.id, e)
        raise HTTPException(500, "Failed to generate ID card")
    return Response(
        content=card,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="student-id-{student.id}.png"'},
    )
