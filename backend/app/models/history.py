from __future__ import annotations

from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import IntIdBase


def _now_utc() -> datetime:
    return datetime.now(UTC)


class LeaveStatusHistory(IntIdBase, table=True):
    """Immutable record of one status transition of a leave request."""

    __tablename__ = "leave_status_history"
    __table_args__ = (sa.Index("ix_history_leave_changed", "leave_id", "changed_at"),)

    leave_id: int = Field(
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False),
    )
    previous_status: str | None = Field(default=None, max_length=20)
    new_status: str = Field(max_length=20)
    changed_by: str = Field(max_length=450)
    changed_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    remarks: str | None = Field(default=None, max_length=1000)
