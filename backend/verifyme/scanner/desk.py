"""
Scan desk: the application's own scanner bound to the server camera.

An admin starts a capture session through the API; whatever the pipeline
delivers is looked up on that admin's behalf and the outcome is kept until
the next session so the dashboard can poll for it.
"""

from datetime import datetime, timezone

from verifyme.errors import LookupFailed, VerifyMeError
from verifyme.models.students import StudentRecord
from verifyme.models.users import AdminIdentity
from verifyme.scanner.camera import Camera
from verifyme.scanner.pipeline import ScannerPipeline
from verifyme.services.verification import VerificationService


class ScanDesk:

    def __init__(self, camera: Camera, verification: VerificationService, **pipeline_options):
        self.verification = verification
        self.pipeline = ScannerPipeline(camera, self._handle_result, **pipeline_options)
        self.operator: AdminIdentity | None = None
        self.student: StudentRecord | None = None
        self.error: VerifyMeError | None = None
        self.scanned_at: datetime | None = None

    async def _handle_result(self, raw_text: str) -> StudentRecord:
        self.scanned_at = datetime.now(timezone.utc)
        try:
            self.student = await self.verification.scan(raw_text, self.operator)
        except VerifyMeError as e:
            self.error = e
            raise
        except Exception as e:
            # status() must never report a decoded scan with no outcome
            self.error = LookupFailed(raw_text[:60], str(e))
            raise self.error from e
        return self.student

    def _reset(self, operator: AdminIdentity | None):
        self.operator = operator
        self.student = None
        self.error = None
        self.scanned_at = None

    async def start(self, operator: AdminIdentity | None, facing_mode: str = "environment"):
        self._reset(operator)
        await self.pipeline.start_capture(facing_mode)

    def stop(self):
        self.pipeline.stop_capture()

    async def submit(self, operator: AdminIdentity | None, text: str) -> StudentRecord:
        self.stop()
        self._reset(operator)
        return await self.pipeline.submit_manual_text(text)

    def status(self) -> dict:
        return {
            "state": self.pipeline.state.value,
            "operator": self.operator.identity if self.operator else None,
            "payload": self.pipeline.last_payload,
            "scanned_at": self.scanned_at.isoformat() if self.scanned_at else None,
            "student": self.student.to_public() if self.student else None,
            "error": self.error.to_dict() if self.error else None,
        }

    async def close(self):
        await self.pipeline.close()
