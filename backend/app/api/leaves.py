from __future__ import annotations

from fastapi import APIRouter, status

from app.api.deps import AuthDep, EmployeeDep, HrDep, ManagerDep, ReviewerDep, WorkflowDep
from app.schemas.leave import (
    ApplyLeavePayload,
    ApplyLeaveResponse,
    DecisionPayload,
    EmployeeDashboard,
    LeaveSummary,
    OverridePayload,
    StatusHistoryResponse,
    TransitionResponse,
)

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


# ---------------------------------------------------------------------------
# Employee
# ---------------------------------------------------------------------------


@leaves_router.post("", response_model=ApplyLeaveResponse, status_code=status.HTTP_201_CREATED)
async def apply_for_leave(
    payload: ApplyLeavePayload,
    workflow: WorkflowDep,
    auth: EmployeeDep,
) -> ApplyLeaveResponse:
    """Apply for leave as the calling employee."""
    leave_id = await workflow.apply(auth.user_id, payload)
    return ApplyLeaveResponse(id=leave_id)


@leaves_router.get("/mine", response_model=list[LeaveSummary])
async def list_my_leaves(workflow: WorkflowDep, auth: AuthDep) -> list[LeaveSummary]:
    """The caller's own leave requests, newest first."""
    return await workflow.list_for_employee(auth.user_id)


@leaves_router.get("/dashboard", response_model=EmployeeDashboard)
async def get_dashboard(workflow: WorkflowDep, auth: AuthDep) -> EmployeeDashboard:
    """The caller's requests and remaining balances."""
    return await workflow.dashboard(auth.user_id)


@leaves_router.post("/{leave_id}/cancel", response_model=TransitionResponse)
async def cancel_leave(leave_id: int, workflow: WorkflowDep, auth: AuthDep) -> TransitionResponse:
    """Cancel one of the caller's pending requests."""
    changed = await workflow.cancel(leave_id, auth.user_id)
    return TransitionResponse(leave_id=leave_id, changed=changed)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


@leaves_router.get("/pending", response_model=list[LeaveSummary])
async def list_pending_leaves(workflow: WorkflowDep, auth: ManagerDep) -> list[LeaveSummary]:
    """Pending requests awaiting a decision, oldest first."""
    return await workflow.list_pending_for_managers()


@leaves_router.post("/{leave_id}/approve", response_model=TransitionResponse)
async def approve_leave(
    leave_id: int,
    workflow: WorkflowDep,
    auth: ManagerDep,
    payload: DecisionPayload | None = None,
) -> TransitionResponse:
    """Approve a pending request (manager only)."""
    changed = await workflow.approve(leave_id, auth.user_id, payload.remarks if payload else None)
    return TransitionResponse(leave_id=leave_id, changed=changed)


@leaves_router.post("/{leave_id}/reject", response_model=TransitionResponse)
async def reject_leave(
    leave_id: int,
    workflow: WorkflowDep,
    auth: ManagerDep,
    payload: DecisionPayload | None = None,
) -> TransitionResponse:
    """Reject a pending request (manager only)."""
    changed = await workflow.reject(leave_id, auth.user_id, payload.remarks if payload else None)
    return TransitionResponse(leave_id=leave_id, changed=changed)


# ---------------------------------------------------------------------------
# HR
# ---------------------------------------------------------------------------


@leaves_router.get("", response_model=list[LeaveSummary])
async def list_all_leaves(workflow: WorkflowDep, auth: HrDep) -> list[LeaveSummary]:
    """Every leave request, newest first (HR only)."""
    return await workflow.list_all()


@leaves_router.post("/{leave_id}/override", response_model=TransitionResponse)
async def override_leave(
    leave_id: int,
    payload: OverridePayload,
    workflow: WorkflowDep,
    auth: HrDep,
) -> TransitionResponse:
    """Set any status on a request, terminal ones included (HR only)."""
    changed = await workflow.override(leave_id, auth.user_id, payload.new_status, payload.remarks)
    return TransitionResponse(leave_id=leave_id, changed=changed)


@leaves_router.get("/{leave_id}/history", response_model=list[StatusHistoryResponse])
async def get_leave_history(leave_id: int, workflow: WorkflowDep, auth: ReviewerDep) -> list[StatusHistoryResponse]:
    """Status changes of a request, oldest first."""
    entries = await workflow.history(leave_id)
    return [StatusHistoryResponse.model_validate(entry, from_attributes=True) for entry in entries]
