"""SQLAlchemy models exposed by the backend."""
from .base import Base
from .scan import Scan
from .scan_session import ScanSession, SessionAssignment
from .user import Role, User

__all__ = ["Base", "Role", "Scan", "ScanSession", "SessionAssignment", "User"]
