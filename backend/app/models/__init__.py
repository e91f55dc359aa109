from sqlmodel import SQLModel

from app.models.base import IntIdBase, TimestampMixin
from app.models.enums import LeaveStatus, Role
from app.models.history import LeaveStatusHistory
from app.models.leave import LeaveRequest

__all__ = [
    "IntIdBase",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveStatusHistory",
    "Role",
    "SQLModel",
    "TimestampMixin",
]
