"""
VerifyMe - Test Configuration and Fixtures
"""
import os
import random
import string
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Set testing environment
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['CAMERA_ENABLED'] = 'false'
os.environ['CLOUDINARY_CLOUD_NAME'] = 'demo'

from verifyme.main import app
from verifyme.dependencies import get_image_uploader, get_scan_desk, get_store
from verifyme.errors import ImageUploadFailed
from verifyme.models.scan_logs import ScanAuditEntry, ScanLogCreate
from verifyme.models.students import StudentCreate, StudentRecord, StudentStatus
from verifyme.models.users import AdminIdentity
from verifyme.scanner.camera import Camera
from verifyme.scanner.desk import ScanDesk
from verifyme.services.verification import RecordView, VerificationService
from verifyme.store import QUERYABLE_FIELDS, RecordStore
from verifyme.utils.jwt_handler import create_access_token
from verifyme.utils.security import hash_password

ID_ALPHABET = string.ascii_letters + string.digits

ADMIN_EMAIL = 'admin@verifyme.local'
ADMIN_PASSWORD = 'Admin@123'
DISABLED_EMAIL = 'disabled@verifyme.local'


def new_record_id() -> str:
    return ''.join(random.choices(ID_ALPHABET, k=20))


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with a clock that moves one second per write"""

    def __init__(self):
        self.students: dict[str, StudentRecord] = {}
        self.scan_logs: list[ScanAuditEntry] = []
        self.admins: dict[str, tuple[AdminIdentity, str]] = {}
        self.fail_scan_log = False
        self.fail_update = False
        self.fail_query = False
        self._clock = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add_admin(self, admin_id: int, email: str, password: str, is_active: bool = True):
        admin = AdminIdentity(id=admin_id, email=email, is_active=is_active)
        self.admins[email] = (admin, hash_password(password))
        return admin

    def add_student(self, **overrides) -> StudentRecord:
        data = {
            'id': new_record_id(),
            'full_name': 'Ada Obi',
            'matric_number': 'SCI/2024/001',
            'faculty': 'Science',
            'department': 'Computer Science',
            'photo_url': 'https://res.cloudinary.com/demo/image/upload/ada.jpg',
            'created_at': self.now(),
        }
        data.update(overrides)
        record = StudentRecord(**data)
        self.students[record.id] = record
        return record

    async def create_student(self, data: StudentCreate, photo_url: str) -> StudentRecord:
        return self.add_student(**data.model_dump(), photo_url=photo_url)

    async def get_student(self, student_id: str) -> StudentRecord | None:
        return self.students.get(student_id)

    async def query_students(self, field, value):
        if self.fail_query:
            raise ConnectionError('store offline')
        if field not in QUERYABLE_FIELDS:
            raise ValueError(f"Cannot query students by '{field}'")
        if isinstance(value, StudentStatus):
            value = value.value
        matches = [s for s in self.students.values() if getattr(s, field) == value]
        return sorted(matches, key=lambda s: s.created_at, reverse=True)

    async def list_students(self):
        return sorted(self.students.values(), key=lambda s: s.created_at, reverse=True)

    async def update_status(self, student_id, status, verified_by):
        if self.fail_update:
            raise ConnectionError('store offline')
        current = self.students.get(student_id)
        if current is None:
            return None
        verified = status == StudentStatus.VERIFIED
        updated = current.model_copy(update={
            'status': status,
            'verified_at': self.now() if verified else None,
            'verified_by': verified_by if verified else None,
        })
        self.students[student_id] = updated
        return updated

    async def append_scan_log(self, entry: ScanLogCreate) -> ScanAuditEntry:
        if self.fail_scan_log:
            raise ConnectionError('store offline')
        logged = ScanAuditEntry(
            id=len(self.scan_logs) + 1, timestamp=self.now(), **entry.model_dump()
        )
        self.scan_logs.append(logged)
        return logged

    async def list_scan_logs(self, student_id=None, limit=100):
        entries = [e for e in reversed(self.scan_logs)
                   if student_id is None or e.student_id == student_id]
        return entries[:limit]

    async def get_admin(self, email):
        return self.admins.get(email)

    async def touch_admin_login(self, admin_id):
        for email, (admin, password_hash) in self.admins.items():
            if admin.id == admin_id:
                touched = admin.model_copy(update={'last_login': self.now()})
                self.admins[email] = (touched, password_hash)


class FakeCamera(Camera):
    """Camera that plays back a list of frames, then returns None"""

    def __init__(self, frames=None, error: Exception = None):
        self.frames = list(frames or [])
        self.error = error
        self.opened_with = None
        self.open_calls = 0
        self.release_calls = 0
        self._open = False

    def open(self, facing_mode='environment'):
        self.open_calls += 1
        if self.error is not None:
            raise self.error
        self.opened_with = facing_mode
        self._open = True

    def read(self):
        if not self._open or not self.frames:
            return None
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame

    def release(self):
        self.release_calls += 1
        self._open = False

    @property
    def is_open(self):
        return self._open


def passthrough_decoder(frame):
    """Frames in tests are already the decoded text (or None)"""
    return frame


class FakeUploader:

    def __init__(self):
        self.uploads = []
        self.fail = False

    async def upload(self, content, filename, content_type):
        if self.fail:
            raise ImageUploadFailed('HTTP 500')
        self.uploads.append((filename, content, content_type))
        return f'https://res.cloudinary.com/demo/image/upload/{filename}'

    async def fetch(self, url):
        return None


@pytest.fixture
def store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.add_admin(1, ADMIN_EMAIL, ADMIN_PASSWORD)
    store.add_admin(2, DISABLED_EMAIL, 'Disabled@123', is_active=False)
    return store


@pytest.fixture
def admin(store: InMemoryRecordStore) -> AdminIdentity:
    return store.admins[ADMIN_EMAIL][0]


@pytest.fixture
def student(store: InMemoryRecordStore) -> StudentRecord:
    return store.add_student()


@pytest.fixture
def record_view() -> RecordView:
    view = RecordView()
    app.state.record_view = view
    return view


@pytest.fixture
def verification(store, record_view) -> VerificationService:
    return VerificationService(store, record_view)


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
async def desk(camera, verification) -> AsyncGenerator[ScanDesk, None]:
    desk = ScanDesk(camera, verification, decoder=passthrough_decoder, frame_interval=0.001)
    yield desk
    await desk.close()


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
async def client(store, uploader, desk) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with store, uploader and scan desk overrides"""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_image_uploader] = lambda: uploader
    app.dependency_overrides[get_scan_desk] = lambda: desk

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(admin: AdminIdentity) -> dict:
    """Generate authentication headers for the seeded admin"""
    token = create_access_token({'sub': admin.email, 'admin_id': admin.id, 'role': 'admin'})
    return {'Authorization': f'Bearer {token}'}
