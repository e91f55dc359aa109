# ruff: noqa: TC003
from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, cast

from sqlmodel import col

from app.exceptions import StoreError, ValidationError
from app.models.enums import LeaveStatus
from app.models.leave import LeaveRequest
from app.schemas.leave import LeaveSummary
from app.services.cache import (
    ALL_LEAVES_KEY,
    DEFAULT_POLICIES,
    MANAGER_PENDING_KEY,
    CachePolicies,
    ExpiryPolicy,
    employee_leaves_key,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.models.history import LeaveStatusHistory
    from app.schemas.leave import ApplyLeavePayload, EmployeeDashboard
    from app.services.cache import ReadCache
    from app.services.dashboard import DashboardAggregator
    from app.services.notifications import NotificationService
    from app.services.store import UnitOfWork

logger = logging.getLogger(__name__)

CANCEL_REMARKS = "Cancelled by employee"
APPLY_REMARKS = "Leave applied"


class NoopReason(enum.StrEnum):
    """Why a requested transition was refused. Refusals are reported as False, not raised."""

    NOT_FOUND = "NOT_FOUND"
    NOT_ALLOWED = "NOT_ALLOWED"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_summary(leave: LeaveRequest) -> LeaveSummary:
    """Map a leave request model to its read-model row."""
    return LeaveSummary(
        leave_id=leave.id,
        employee_id=leave.employee_id,
        leave_type=leave.leave_type,
        start_date=leave.start_date,
        end_date=leave.end_date,
        status=LeaveStatus(leave.status),
        created_at=leave.created_at,
    )


def _parse_override_target(new_status: str) -> LeaveStatus:
    try:
        return LeaveStatus(new_status)
    except ValueError:
        raise ValidationError("Invalid status specified for override.") from None


class LeaveWorkflow:
    """Leave request state machine: Pending -> Approved | Rejected, plus HR override.

    Writes go through the unit of work (entity change and its history entry
    commit together), then notify the owner on a best-effort basis, then
    invalidate every cached list. Reads are served from the read cache and
    repopulated from the store on a miss.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cache: ReadCache,
        notifier: NotificationService,
        aggregator: DashboardAggregator,
        policies: CachePolicies = DEFAULT_POLICIES,
    ) -> None:
        self._uow = uow
        self._cache = cache
        self._notifier = notifier
        self._aggregator = aggregator
        self._policies = policies

    # -----------------------------------------------------------------------
    # Write path
    # -----------------------------------------------------------------------

    async def apply(self, employee_id: str, payload: ApplyLeavePayload) -> int:
        """Create a Pending leave request and its creation history entry. Returns the new id."""
        if payload.end_date < payload.start_date:
            raise ValidationError("End date cannot be earlier than start date.")

        async with self._uow as uow:
            leave = LeaveRequest(
                employee_id=employee_id,
                leave_type=payload.leave_type,
                start_date=payload.start_date,
                end_date=payload.end_date,
                reason=payload.reason,
                status=LeaveStatus.PENDING.value,
            )
            uow.leave_requests.add(leave)
            await uow.flush()
            if leave.id is None:
                raise StoreError("Leave request was not assigned an id")

            uow.audit.record(
                leave_id=leave.id,
                previous_status=None,
                new_status=LeaveStatus.PENDING,
                changed_by=employee_id,
                remarks=APPLY_REMARKS,
            )
            await uow.commit()

        logger.info("Leave %s applied by %s (%s..%s)", leave.id, employee_id, leave.start_date, leave.end_date)
        await self._notify(
            employee_id,
            "Leave request submitted",
            f"Leave {leave.id} from {leave.start_date:%d %b %Y} to {leave.end_date:%d %b %Y} submitted.",
        )
        self._invalidate(employee_id)
        return leave.id

    async def cancel(self, leave_id: int, employee_id: str) -> bool:
        """Withdraw an own Pending request. Recorded as a rejection."""
        leave = await self._uow.leave_requests.get(leave_id)
        if leave is None:
            return self._noop(leave_id, NoopReason.NOT_FOUND)
        if leave.employee_id != employee_id or leave.status != LeaveStatus.PENDING:
            return self._noop(leave_id, NoopReason.NOT_ALLOWED)

        await self._transition(leave, LeaveStatus.REJECTED, employee_id, CANCEL_REMARKS)
        await self._notify(
            leave.employee_id,
            "Leave request cancelled",
            f"Your leave request {leave.id} has been cancelled.",
        )
        self._invalidate(leave.employee_id)
        return True

    async def approve(self, leave_id: int, manager_id: str, remarks: str | None = None) -> bool:
        return await self._decide(leave_id, manager_id, LeaveStatus.APPROVED, remarks)

    async def reject(self, leave_id: int, manager_id: str, remarks: str | None = None) -> bool:
        return await self._decide(leave_id, manager_id, LeaveStatus.REJECTED, remarks)

    async def override(self, leave_id: int, hr_id: str, new_status: str, remarks: str | None = None) -> bool:
        """Force a request into any status, terminal ones included.

        Raises ValidationError for an unknown status. Overriding to the
        current status is a no-op.
        """
        target = _parse_override_target(new_status)

        leave = await self._uow.leave_requests.get(leave_id)
        if leave is None:
            return self._noop(leave_id, NoopReason.NOT_FOUND)
        if leave.status == target:
            return self._noop(leave_id, NoopReason.NOT_ALLOWED)

        await self._transition(leave, target, hr_id, remarks)
        await self._notify(
            leave.employee_id,
            "Leave request status overridden",
            f"Your leave request {leave.id} status has been changed to {target}.",
        )
        self._invalidate(leave.employee_id)
        return True

    async def _decide(self, leave_id: int, manager_id: str, target: LeaveStatus, remarks: str | None) -> bool:
        """Shared logic for approve and reject: Pending only."""
        leave = await self._uow.leave_requests.get(leave_id)
        if leave is None:
            return self._noop(leave_id, NoopReason.NOT_FOUND)
        if leave.status != LeaveStatus.PENDING:
            return self._noop(leave_id, NoopReason.NOT_ALLOWED)

        await self._transition(leave, target, manager_id, remarks)
        verb = "approved" if target == LeaveStatus.APPROVED else "rejected"
        await self._notify(
            leave.employee_id,
            f"Leave request {verb}",
            f"Your leave request {leave.id} has been {verb}.",
        )
        self._invalidate(leave.employee_id)
        return True

    async def _transition(
        self,
        leave: LeaveRequest,
        target: LeaveStatus,
        actor_id: str,
        remarks: str | None,
    ) -> None:
        """Change the status and append its history entry as one unit of work."""
        leave_id = cast("int", leave.id)  # loaded rows always carry their id
        previous = LeaveStatus(leave.status)

        async with self._uow as uow:
            leave.status = target.value
            uow.leave_requests.update(leave)
            uow.audit.record(
                leave_id=leave_id,
                previous_status=previous,
                new_status=target,
                changed_by=actor_id,
                remarks=remarks,
            )
            await uow.commit()

        logger.info("Leave %s moved %s -> %s by %s", leave.id, previous, target, actor_id)

    def _noop(self, leave_id: int, reason: NoopReason) -> bool:
        logger.debug("Leave %s transition skipped: %s", leave_id, reason)
        return False

    async def _notify(self, recipient: str, subject: str, body: str) -> None:
        try:
            await self._notifier.send(recipient, subject, body)
        except Exception:
            logger.warning("Notification to %s failed: %s", recipient, subject, exc_info=True)

    def _invalidate(self, employee_id: str) -> None:
        # Every write drops all three families, whether or not it changed them.
        try:
            self._cache.invalidate(employee_leaves_key(employee_id), MANAGER_PENDING_KEY, ALL_LEAVES_KEY)
        except Exception:
            logger.exception("Cache invalidation failed for employee %s", employee_id)

    # -----------------------------------------------------------------------
    # Read path
    # -----------------------------------------------------------------------

    async def list_for_employee(self, employee_id: str) -> list[LeaveSummary]:
        """An employee's requests, newest first."""
        return await self._read_through(
            employee_leaves_key(employee_id),
            self._policies.employee,
            lambda: self._load(
                col(LeaveRequest.employee_id) == employee_id,
                newest_first=True,
            ),
        )

    async def list_pending_for_managers(self) -> list[LeaveSummary]:
        """Every Pending request, oldest first."""
        return await self._read_through(
            MANAGER_PENDING_KEY,
            self._policies.manager_pending,
            lambda: self._load(
                col(LeaveRequest.status) == LeaveStatus.PENDING.value,
                newest_first=False,
            ),
        )

    async def list_all(self) -> list[LeaveSummary]:
        """Every request, newest first."""
        return await self._read_through(
            ALL_LEAVES_KEY,
            self._policies.all_leaves,
            lambda: self._load(newest_first=True),
        )

    async def dashboard(self, employee_id: str) -> EmployeeDashboard:
        requests = await self.list_for_employee(employee_id)
        return self._aggregator.build(requests)

    async def history(self, leave_id: int) -> list[LeaveStatusHistory]:
        """Audit trail of one request, oldest entry first. Not cached."""
        return await self._uow.audit.history_for(leave_id)

    async def _load(self, *criteria: object, newest_first: bool) -> tuple[LeaveSummary, ...]:
        created, leave_pk = col(LeaveRequest.created_at), col(LeaveRequest.id)
        order_by = (created.desc(), leave_pk.desc()) if newest_first else (created.asc(), leave_pk.asc())
        leaves = await self._uow.leave_requests.find(
            col(LeaveRequest.is_deleted) == False,  # noqa: E712
            *criteria,
            order_by=order_by,
        )
        return tuple(_to_summary(leave) for leave in leaves)

    async def _read_through(
        self,
        key: str,
        policy: ExpiryPolicy,
        loader: Callable[[], Awaitable[tuple[LeaveSummary, ...]]],
    ) -> list[LeaveSummary]:
        generation: int | None = None
        try:
            cached = self._cache.get(key)
            generation = self._cache.generation()
        except Exception:
            logger.exception("Cache read failed for %s; loading from store", key)
            cached = None
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return list(cached)

        logger.debug("Cache miss for %s", key)
        rows = await loader()
        if generation is None:
            return list(rows)
        try:
            # Refused if a write invalidated the cache while we were loading.
            self._cache.set(key, rows, policy, generation=generation)
        except Exception:
            logger.exception("Cache write failed for %s", key)
        return list(rows)
