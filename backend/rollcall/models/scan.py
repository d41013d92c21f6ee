"""Recorded student-number scans."""
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utcnow


class Scan(UUIDPrimaryKeyMixin, Base):
    """One student number seen once in one session."""

    __tablename__ = "scans"

    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="CASCADE")
    )
    scanned_student_number: Mapped[str] = mapped_column(String(64))
    scanned_by_user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"))
    scanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "session_id", "scanned_student_number", name="uq_scans_session_student_number"
        ),
        Index("ix_scans_session_scanned_at", "session_id", "scanned_at"),
    )
