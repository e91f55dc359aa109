# ruff: noqa: B008
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Header, Request, status

from app.config import get_settings
from app.db import SessionDep
from app.exceptions import AppError
from app.models.enums import Role
from app.schemas.auth import AuthContext
from app.services.cache import CachePolicies
from app.services.dashboard import DashboardAggregator
from app.services.leave import LeaveWorkflow
from app.services.notifications import NotificationService, get_notification_service
from app.services.store import UnitOfWork


async def get_auth_context(
    x_user_id: str = Header(min_length=1),
    x_role: Role = Header(default=Role.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


def require_role(*roles: Role) -> Callable[[AuthContext], Awaitable[AuthContext]]:
    """Build a dependency that admits only the given roles."""

    async def _check(auth: AuthDep) -> AuthContext:
        if auth.role not in roles:
            names = " or ".join(role.value for role in roles)
            raise AppError(f"{names} access required", status_code=status.HTTP_403_FORBIDDEN)
        return auth

    return _check


EmployeeDep = Annotated[AuthContext, Depends(require_role(Role.EMPLOYEE))]
ManagerDep = Annotated[AuthContext, Depends(require_role(Role.MANAGER))]
HrDep = Annotated[AuthContext, Depends(require_role(Role.HR))]
ReviewerDep = Annotated[AuthContext, Depends(require_role(Role.MANAGER, Role.HR))]


async def get_leave_workflow(
    request: Request,
    session: SessionDep,
    notifier: NotificationService = Depends(get_notification_service),
) -> LeaveWorkflow:
    """Build a workflow for this request around the application-wide read cache."""
    settings = get_settings()
    return LeaveWorkflow(
        UnitOfWork(session),
        request.app.state.read_cache,
        notifier,
        DashboardAggregator(settings.leave_allowances),
        CachePolicies.from_settings(settings),
    )


WorkflowDep = Annotated[LeaveWorkflow, Depends(get_leave_workflow)]
