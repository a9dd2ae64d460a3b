"""
Lookup and status changes for scanned student records.

``VerificationService`` ties the resolver to the record store: it turns raw
scanner text into a record (writing the scan audit trail on the way) and
moves records between Pending, Verified and Rejected. Any status may follow
any other; Verified always restamps ``verifiedAt``.
"""

from verifyme.errors import AuditLogFailed, LookupFailed, NotFound, UpdateFailed, VerifyMeError
from verifyme.models.scan_logs import ScanLogCreate
from verifyme.models.students import StudentRecord, StudentStatus
from verifyme.models.users import AdminIdentity, identity_of
from verifyme.services.resolver import resolve
from verifyme.store import RecordStore
from verifyme.utils.logger import get_logger

logger = get_logger(__name__)


class RecordView:
    """In-memory copy of the records an admin session has seen"""

    def __init__(self):
        self._records: dict[str, StudentRecord] = {}
        self.current: StudentRecord | None = None

    def get(self, student_id: str) -> StudentRecord | None:
        return self._records.get(student_id)

    def put(self, record: StudentRecord):
        self._records[record.id] = record
        if self.current is not None and self.current.id == record.id:
            self.current = record

    def show(self, record: StudentRecord):
        self.put(record)
        self.current = record

    def __contains__(self, student_id: str) -> bool:
        return student_id in self._records

    def __len__(self) -> int:
        return len(self._records)


class VerificationService:

    def __init__(self, store: RecordStore, view: RecordView | None = None):
        self.store = store
        self.view = view if view is not None else RecordView()

    async def scan(self, raw_text: str, admin: AdminIdentity | None) -> StudentRecord:
        """Resolve raw scanner/typed text and look the record up"""
        student_id = resolve(raw_text)
        logger.info("Processing student ID: %s", student_id)
        return await self.lookup(student_id, admin, raw_text)

    async def lookup(self, student_id: str, admin: AdminIdentity | None,
                     raw_payload: str | None = None) -> StudentRecord:
        try:
            records = await self.store.query_students("id", student_id)
        except VerifyMeError:
            raise
        except Exception as e:
            logger.error("Error looking up %s: %s", student_id, e, exc_info=True)
            raise LookupFailed(student_id, str(e)) from e

        if not records:
            raise NotFound(student_id)

        student = records[0]
        self.view.show(student)
        await self._log_scan(student_id, admin, raw_payload if raw_payload is not None else student_id)
        return student

    async def _log_scan(self, student_id: str, admin: AdminIdentity | None, raw_payload: str):
        admin_id, admin_email = identity_of(admin)
        entry = ScanLogCreate(
            student_id=student_id,
            admin_id=admin_id,
            admin_email=admin_email,
            raw_qr_data=raw_payload,
        )
        try:
            await self.store.append_scan_log(entry)
        except Exception as e:
            # the lookup already succeeded; a missing audit row must not undo it
            failure = AuditLogFailed(student_id, str(e))
            logger.error(failure.message, exc_info=True,
                         extra={"error_code": failure.code, "student_id": student_id})

    async def set_status(self, student_id: str, status: StudentStatus,
                         admin: AdminIdentity | None) -> StudentRecord:
        status = StudentStatus(status)
        _, verified_by = identity_of(admin)

        try:
            updated = await self.store.update_status(
                student_id,
                status,
                verified_by if status == StudentStatus.VERIFIED else None,
            )
        except VerifyMeError:
            raise
        except Exception as e:
            logger.error("Error updating status of %s: %s", student_id, e, exc_info=True)
            raise UpdateFailed(student_id, str(e)) from e

        if updated is None:
            raise NotFound(student_id)

        self.view.put(updated)
        logger.info("Student %s status updated to %s by %s",
                    student_id, status.value, verified_by)
        return updated
