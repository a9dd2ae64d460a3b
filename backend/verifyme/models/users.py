# backend/verifyme/models/users.py
from datetime import datetime

from pydantic import BaseModel, EmailStr

from verifyme import config


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AdminIdentity(BaseModel):
    id: int
    email: str | None = None
    is_active: bool = True
    last_login: datetime | None = None

    @property
    def identity(self) -> str:
        """Identity string attached to audit entries and verification metadata"""
        return self.email or config.UNKNOWN_IDENTITY

    @property
    def admin_id(self) -> str:
        return str(self.id) if self.id is not None else config.UNKNOWN_IDENTITY


def identity_of(admin: AdminIdentity | None) -> tuple[str, str]:
    """(admin id, admin email) for the acting admin, ``unknown`` when absent"""
    if admin is None:
        return config.UNKNOWN_IDENTITY, config.UNKNOWN_IDENTITY
    return admin.admin_id, admin.identity
