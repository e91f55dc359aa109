from __future__ import annotations

from typing import TYPE_CHECKING

from app.models.enums import LeaveStatus
from app.schemas.leave import EmployeeDashboard, LeaveBalance, LeaveSummary

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import date


def inclusive_day_span(start: date, end: date) -> int:
    """Days consumed by a leave from ``start`` to ``end``, both included."""
    return (end - start).days + 1


class DashboardAggregator:
    """Builds the employee dashboard from a request list and a fixed allowance table.

    Leave types are compared case-insensitively. Requests whose type has no
    allowance are left out of the balances.
    """

    def __init__(self, allowances: Mapping[str, int]) -> None:
        # casefolded key -> (display name, days)
        self._allowances: dict[str, tuple[str, int]] = {
            leave_type.casefold(): (leave_type, days) for leave_type, days in allowances.items()
        }

    def used_days_by_type(self, requests: Iterable[LeaveSummary]) -> dict[str, int]:
        """Sum of approved inclusive day-spans, keyed by casefolded leave type."""
        used: dict[str, int] = {}
        for request in requests:
            if request.status != LeaveStatus.APPROVED:
                continue
            key = request.leave_type.casefold()
            used[key] = used.get(key, 0) + inclusive_day_span(request.start_date, request.end_date)
        return used

    def balances(self, requests: Iterable[LeaveSummary]) -> list[LeaveBalance]:
        used = self.used_days_by_type(requests)
        return [
            LeaveBalance(leave_type=name, allowance_days=days, used_days=used.get(key, 0))
            for key, (name, days) in self._allowances.items()
        ]

    def build(self, requests: Sequence[LeaveSummary]) -> EmployeeDashboard:
        return EmployeeDashboard(requests=list(requests), balances=self.balances(requests))
