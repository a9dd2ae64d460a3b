# backend/verifyme/models/students.py
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from verifyme.services.resolver import is_canonical_id


class StudentStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class StudentRecord(BaseModel):
    """A registrant as stored in the ``students`` collection"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    full_name: str = Field(min_length=1)
    matric_number: str = Field(min_length=1)
    faculty: str
    department: str
    photo_url: str
    status: StudentStatus = StudentStatus.PENDING
    created_at: datetime
    verified_at: datetime | None = None
    verified_by: str | None = None

    @field_validator('id')
    @classmethod
    def validate_id(cls, v):
        if not is_canonical_id(v):
            raise ValueError('id must be 20 alphanumeric characters')
        return v

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class StudentCreate(BaseModel):
    full_name: str
    matric_number: str
    faculty: str
    department: str

    @field_validator('full_name', 'matric_number', 'faculty', 'department')
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class StatusUpdateRequest(BaseModel):
    status: StudentStatus


# Faculties and departments offered on the registration form
FACULTIES = [
    {
        "id": "engineering",
        "name": "Engineering",
        "departments": [
            "Computer Engineering",
            "Electrical Engineering",
            "Mechanical Engineering",
            "Civil Engineering",
        ],
    },
    {
        "id": "science",
        "name": "Science",
        "departments": ["Computer Science", "Mathematics", "Physics", "Chemistry", "Biology"],
    },
    {
        "id": "arts",
        "name": "Arts",
        "departments": ["English", "History", "Philosophy", "Languages"],
    },
    {
        "id": "business",
        "name": "Business",
        "departments": ["Accounting", "Finance", "Marketing", "Management"],
    },
    {
        "id": "medicine",
        "name": "Medicine",
        "departments": ["Medicine", "Nursing", "Pharmacy", "Public Health"],
    },
]


def find_faculty(faculty_id: str) -> dict | None:
    return next((f for f in FACULTIES if f["id"] == faculty_id), None)
