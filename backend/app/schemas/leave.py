# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.models.enums import LeaveStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeavePayload(BaseModel):
    """Request body for applying for leave.

    The date order is checked by the workflow, not here, so the caller gets
    the workflow's validation message rather than a schema error.
    """

    leave_type: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    remarks: str | None = Field(default=None, max_length=1000)


class OverridePayload(BaseModel):
    """Request body for an HR status override.

    ``new_status`` stays a plain string; unknown values are rejected by the
    workflow with a validation error.
    """

    new_status: str
    remarks: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class LeaveSummary(BaseModel):
    """Read-model row for a leave request. Shared through the cache, so frozen."""

    model_config = ConfigDict(frozen=True)

    leave_id: int
    employee_id: str
    leave_type: str
    start_date: date
    end_date: date
    status: LeaveStatus
    created_at: datetime


class LeaveBalance(BaseModel):
    """Derived balance for one leave type."""

    model_config = ConfigDict(frozen=True)

    leave_type: str
    allowance_days: int
    used_days: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_days(self) -> int:
        return self.allowance_days - self.used_days


class EmployeeDashboard(BaseModel):
    """An employee's requests and balances."""

    requests: list[LeaveSummary]
    balances: list[LeaveBalance]


class StatusHistoryResponse(BaseModel):
    """One audit entry for a leave request."""

    id: int
    leave_id: int
    previous_status: LeaveStatus | None
    new_status: LeaveStatus
    changed_by: str
    changed_at: datetime
    remarks: str | None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ApplyLeaveResponse(BaseModel):
    """Identifier of a newly created leave request."""

    id: int


class TransitionResponse(BaseModel):
    """Outcome of a cancel/approve/reject/override call. ``changed`` is False for a no-op."""

    leave_id: int
    changed: bool
