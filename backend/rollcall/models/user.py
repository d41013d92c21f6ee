"""User accounts and their roles."""
import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utcnow


class Role(str, enum.Enum):
    """The two roles a caller can hold."""

    ADMIN = "ADMIN"
    SCANNER = "SCANNER"


class User(UUIDPrimaryKeyMixin, Base):
    """Application user; admins manage sessions, scanners record scans."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(150), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=16, name="user_role"),
        default=Role.SCANNER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
