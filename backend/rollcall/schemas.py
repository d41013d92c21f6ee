"""Pydantic schemas used across the backend API."""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .models import Role


class LoginRequest(BaseModel):
    """Credentials supplied during login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class CurrentUser(BaseModel):
    """The authenticated caller."""

    id: str
    username: str
    role: Role

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    user: CurrentUser


class MessageResponse(BaseModel):
    message: str


class UserCreate(BaseModel):
    """Payload for creating a scanner account."""

    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=4)


class UserUpdate(BaseModel):
    is_active: bool | None = None
    password: str | None = Field(default=None, min_length=4)


class UserRead(BaseModel):
    """Public representation of a user."""

    id: str
    username: str
    role: Role
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UserList(BaseModel):
    users: list[UserRead]


class SessionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    notes: str | None = None


class SessionUpdate(BaseModel):
    is_open: bool | None = None


class SessionRead(BaseModel):
    id: str
    title: str
    notes: str | None = None
    created_by: str
    created_by_username: str | None = None
    is_open: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SessionList(BaseModel):
    sessions: list[SessionRead]


class AssignmentRequest(BaseModel):
    scanner_user_id: str = Field(min_length=1)


class AssignmentRead(BaseModel):
    scanner_user_id: str
    username: str | None = None


class AssignmentList(BaseModel):
    assignments: list[AssignmentRead]


class ScanCreate(BaseModel):
    scanned_student_number: str = Field(min_length=1, max_length=64)

    @field_validator("scanned_student_number", mode="before")
    @classmethod
    def _strip_whitespace(cls, value):
        # Keyboard-wedge readers append whitespace or a newline.
        return value.strip() if isinstance(value, str) else value


class ScanRead(BaseModel):
    id: str
    session_id: str
    scanned_student_number: str
    scanned_by_user_id: str
    scanned_by_username: str | None = None
    scanned_at: datetime

    class Config:
        from_attributes = True


class ScanRecorded(ScanRead):
    """A freshly recorded scan; ``scanned`` is False because it is new."""

    scanned: bool = False


class ScanList(BaseModel):
    scans: list[ScanRead]
