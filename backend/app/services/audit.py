from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col

from app.exceptions import StoreError
from app.models.history import LeaveStatusHistory

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from app.models.enums import LeaveStatus


class StatusHistoryRecorder:
    """Append-only access to ``leave_status_history``.

    Entries are written inside the caller's unit of work and are never
    updated or deleted.
    """

    def __init__(
        self,
        session: AsyncSession,
        on_write: Callable[[], None] | None = None,
        on_error: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._session = session
        self._on_write = on_write
        self._on_error = on_error

    def record(
        self,
        *,
        leave_id: int,
        previous_status: LeaveStatus | None,
        new_status: LeaveStatus,
        changed_by: str,
        remarks: str | None = None,
    ) -> LeaveStatusHistory:
        """Stage one history entry within the caller's transaction."""
        entry = LeaveStatusHistory(
            leave_id=leave_id,
            previous_status=previous_status.value if previous_status is not None else None,
            new_status=new_status.value,
            changed_by=changed_by,
            remarks=remarks,
        )
        self._session.add(entry)
        if self._on_write is not None:
            self._on_write()
        return entry

    async def history_for(self, leave_id: int) -> list[LeaveStatusHistory]:
        """Entries for a leave request in the order they were written."""
        try:
            result = await self._session.execute(
                select(LeaveStatusHistory)
                .where(col(LeaveStatusHistory.leave_id) == leave_id)
                .order_by(col(LeaveStatusHistory.changed_at), col(LeaveStatusHistory.id))
            )
        except SQLAlchemyError as exc:
            if self._on_error is not None:
                await self._on_error()
            raise StoreError(f"Failed to load history for leave {leave_id}") from exc
        return list(result.scalars().all())
