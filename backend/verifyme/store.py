"""
Record store contract and its PostgreSQL implementation.

The rest of the application talks to ``RecordStore`` only: a document-store
shaped API over a ``students`` collection, an append-only ``scanLogs``
collection and the admin accounts used by login. Rows coming back from the
database are validated into ``StudentRecord`` here, so nothing past this
module ever sees an unchecked shape.
"""

from abc import ABC, abstractmethod
from typing import Any

import asyncpg
from pydantic import ValidationError

from verifyme.errors import MalformedRecord
from verifyme.models.scan_logs import ScanAuditEntry, ScanLogCreate
from verifyme.models.students import StudentCreate, StudentRecord, StudentStatus
from verifyme.models.users import AdminIdentity
from verifyme.utils.logger import get_logger

logger = get_logger(__name__)

# fields that may be used with query_students
QUERYABLE_FIELDS = {
    "id": "id",
    "matric_number": "matric_number",
    "faculty": "faculty",
    "department": "department",
    "status": "status",
}


def to_student(row: Any) -> StudentRecord:
    data = dict(row)
    try:
        return StudentRecord.model_validate(data)
    except ValidationError as e:
        raise MalformedRecord(str(data.get("id", "?")), str(e)) from e


def to_students(rows) -> list[StudentRecord]:
    """Validate a batch, skipping (and logging) malformed rows"""
    records = []
    for row in rows:
        try:
            records.append(to_student(row))
        except MalformedRecord as e:
            logger.warning("Skipping malformed student record %s: %s",
                           e.details.get("record_id"), e.details.get("reason"))
    return records


class RecordStore(ABC):
    """Operations the core requires from the document store"""

    @abstractmethod
    async def create_student(self, data: StudentCreate, photo_url: str) -> StudentRecord:
        """Insert a Pending record; the store assigns id and createdAt"""

    @abstractmethod
    async def get_student(self, student_id: str) -> StudentRecord | None:
        """Point query by primary key"""

    @abstractmethod
    async def query_students(self, field: str, value: Any) -> list[StudentRecord]:
        """Equality query on one field"""

    @abstractmethod
    async def list_students(self) -> list[StudentRecord]:
        """All records, newest first"""

    @abstractmethod
    async def update_status(
        self, student_id: str, status: StudentStatus, verified_by: str | None
    ) -> StudentRecord | None:
        """Write status and verification metadata; None if no such record.

        Entering Verified stamps ``verified_at`` with the store's clock and
        stores ``verified_by``; any other status clears both.
        """

    @abstractmethod
    async def append_scan_log(self, entry: ScanLogCreate) -> ScanAuditEntry:
        """Append one audit entry; the store assigns the timestamp"""

    @abstractmethod
    async def list_scan_logs(self, student_id: str | None = None,
                             limit: int = 100) -> list[ScanAuditEntry]:
        """Most recent audit entries first"""

    @abstractmethod
    async def get_admin(self, email: str) -> tuple[AdminIdentity, str] | None:
        """Admin account and its password hash"""

    @abstractmethod
    async def touch_admin_login(self, admin_id: int) -> None:
        """Record a successful login"""


class PostgresRecordStore(RecordStore):
    """``RecordStore`` on an asyncpg pool"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create_student(self, data: StudentCreate, photo_url: str) -> StudentRecord:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO students
                (full_name, matric_number, faculty, department, photo_url, status)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
            """, data.full_name, data.matric_number, data.faculty, data.department,
                photo_url, StudentStatus.PENDING.value)
        return to_student(row)

    async def get_student(self, student_id: str) -> StudentRecord | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM students WHERE id=$1", student_id)
        return to_student(row) if row else None

    async def query_students(self, field: str, value: Any) -> list[StudentRecord]:
        column = QUERYABLE_FIELDS.get(field)
        if column is None:
            raise ValueError(f"Cannot query students by '{field}'")
        if isinstance(value, StudentStatus):
            value = value.value

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT * FROM students WHERE {column} = $1 ORDER BY created_at DESC",
                value,
            )
        return to_students(rows)

    async def list_students(self) -> list[StudentRecord]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM students ORDER BY created_at DESC")
        return to_students(rows)

    async def update_status(
        self, student_id: str, status: StudentStatus, verified_by: str | None
    ) -> StudentRecord | None:
        verified = status == StudentStatus.VERIFIED
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                UPDATE students
                SET status = $1,
                    verified_at = CASE WHEN $2 THEN CURRENT_TIMESTAMP ELSE NULL END,
                    verified_by = $3
                WHERE id = $4
                RETURNING *
            """, status.value, verified, verified_by if verified else None, student_id)
        return to_student(row) if row else None

    async def append_scan_log(self, entry: ScanLogCreate) -> ScanAuditEntry:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO scan_logs (student_id, admin_id, admin_email, raw_qr_data)
                VALUES ($1, $2, $3, $4)
                RETURNING *
            """, entry.student_id, entry.admin_id, entry.admin_email, entry.raw_qr_data)
        return ScanAuditEntry.model_validate(dict(row))

    async def list_scan_logs(self, student_id: str | None = None,
                             limit: int = 100) -> list[ScanAuditEntry]:
        async with self.pool.acquire() as conn:
            if student_id:
                rows = await conn.fetch("""
                    SELECT * FROM scan_logs WHERE student_id = $1
                    ORDER BY timestamp DESC LIMIT $2
                """, student_id, limit)
            else:
                rows = await conn.fetch(
                    "SELECT * FROM scan_logs ORDER BY timestamp DESC LIMIT $1", limit
                )
        return [ScanAuditEntry.model_validate(dict(r)) for r in rows]

    async def get_admin(self, email: str) -> tuple[AdminIdentity, str] | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT id, email, password_hash, is_active, last_login
                FROM admins WHERE email = $1
            """, email)
        if not row:
            return None
        data = dict(row)
        password_hash = data.pop("password_hash")
        return AdminIdentity(**data), password_hash

    async def touch_admin_login(self, admin_id: int) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "UPDATE admins SET last_login = CURRENT_TIMESTAMP WHERE id = $1", admin_id
            )
