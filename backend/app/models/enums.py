from __future__ import annotations

import enum


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Role(enum.StrEnum):
    """Role resolved for the caller by the identity provider."""

    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    HR = "HR"
