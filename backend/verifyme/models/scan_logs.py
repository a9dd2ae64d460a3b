# backend/verifyme/models/scan_logs.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ScanLogCreate(BaseModel):
    student_id: str
    admin_id: str
    admin_email: str
    raw_qr_data: str


class ScanAuditEntry(ScanLogCreate):
    """Append-only ``scanLogs`` entry written after every successful lookup"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    timestamp: datetime

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ScanRequest(BaseModel):
    raw_text: str
