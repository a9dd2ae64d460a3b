"""
VerifyMe error taxonomy
=======================

Every failure the core can report to a user is a ``VerifyMeError`` subclass
with a stable ``code``, a human-readable ``message`` and the HTTP status the
API answers with. The FastAPI exception handler in ``verifyme.main`` renders
them, so routers simply let them propagate.

Usage:
    from verifyme.errors import NotFound

    if not records:
        raise NotFound(student_id)
"""

from typing import Any, Dict, Optional


class VerifyMeError(Exception):
    """Base exception for all VerifyMe errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "detail": self.details,
        }


# ============================================
# Camera / scanner input
# ============================================

class CameraUnavailable(VerifyMeError):
    """No camera API available in this runtime"""

    status_code = 503

    def __init__(self, message: str = "Camera is not supported on this scanner station."):
        super().__init__(message, code="CAMERA_UNAVAILABLE")


class PermissionDenied(VerifyMeError):
    """Access to the camera device was refused"""

    status_code = 403

    def __init__(self, device: Optional[str] = None):
        message = "Camera permission denied. Please allow camera access and try again."
        super().__init__(
            message,
            code="CAMERA_PERMISSION_DENIED",
            details={"device": device} if device else None,
        )


class NoDeviceFound(VerifyMeError):
    """No camera device exists"""

    status_code = 404

    def __init__(self, device: Optional[str] = None):
        super().__init__(
            "No camera found. Please connect a camera and try again.",
            code="CAMERA_NOT_FOUND",
            details={"device": device} if device else None,
        )


class EmptyInput(VerifyMeError):
    """Manual entry or scanned payload is blank"""

    status_code = 400

    def __init__(self):
        super().__init__("QR code appears to be empty", code="EMPTY_INPUT")


class NoCodeDetected(VerifyMeError):
    """Uploaded still image contains no readable QR code"""

    status_code = 422

    def __init__(self):
        super().__init__("No QR code could be read from the image", code="NO_CODE_DETECTED")


# ============================================
# Resolution / lookup / state machine
# ============================================

class InvalidFormat(VerifyMeError):
    """Scanned text does not contain a canonical student identifier"""

    status_code = 422

    def __init__(self, raw_text: str = ""):
        super().__init__(
            "This doesn't appear to be a valid student QR code",
            code="INVALID_FORMAT",
            details={"raw": raw_text[:120]} if raw_text else None,
        )


class NotFound(VerifyMeError):
    """No student record for the identifier"""

    status_code = 404

    def __init__(self, student_id: str):
        super().__init__(
            "No student record found for this QR code",
            code="STUDENT_NOT_FOUND",
            details={"student_id": student_id},
        )


class LookupFailed(VerifyMeError):
    """The store could not be queried for the identifier"""

    status_code = 503

    def __init__(self, student_id: str, reason: str = ""):
        super().__init__(
            "Failed to look up student record. Please try again.",
            code="LOOKUP_FAILED",
            details={"student_id": student_id, "reason": reason},
        )


class UpdateFailed(VerifyMeError):
    """Persisting a status change failed; nothing was changed"""

    status_code = 503

    def __init__(self, student_id: str, reason: str = ""):
        super().__init__(
            "Failed to update student status. Please try again.",
            code="UPDATE_FAILED",
            details={"student_id": student_id, "reason": reason},
        )


class AuditLogFailed(VerifyMeError):
    """Appending a scan log entry failed (never surfaced to users)"""

    def __init__(self, student_id: str, reason: str = ""):
        super().__init__(
            f"Error logging scan for {student_id}",
            code="AUDIT_LOG_FAILED",
            details={"student_id": student_id, "reason": reason},
        )


class MalformedRecord(VerifyMeError):
    """Stored document does not have the student record shape"""

    status_code = 500

    def __init__(self, record_id: str, reason: str = ""):
        super().__init__(
            "Student record is malformed",
            code="MALFORMED_RECORD",
            details={"record_id": record_id, "reason": reason},
        )


# ============================================
# Registration
# ============================================

class RegistrationInvalid(VerifyMeError):
    """Registration form is incomplete or inconsistent"""

    status_code = 400

    def __init__(self, message: str = "Please fill in all fields and upload a photo"):
        super().__init__(message, code="REGISTRATION_INVALID")


class ImageUploadFailed(VerifyMeError):
    """The image host rejected or failed the photo upload"""

    status_code = 502

    def __init__(self, reason: str = ""):
        super().__init__(
            "Failed to upload image",
            code="IMAGE_UPLOAD_FAILED",
            details={"reason": reason} if reason else None,
        )
