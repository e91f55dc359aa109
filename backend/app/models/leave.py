# ruff: noqa: TC003
from __future__ import annotations

from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import IntIdBase, TimestampMixin
from app.models.enums import LeaveStatus


class LeaveRequest(IntIdBase, TimestampMixin, table=True):
    """An employee's leave request and its current workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_leave_request_status_created", "status", "created_at"),)

    employee_id: str = Field(max_length=450, index=True)
    leave_type: str = Field(max_length=100)
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)
    status: str = Field(default=LeaveStatus.PENDING, max_length=20, sa_column_kwargs={"server_default": "Pending"})
    # Reserved for soft deletion; reads exclude flagged rows.
    is_deleted: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
