"""Persistent entity store: generic repository plus a unit-of-work boundary.

The store knows nothing about leave rules. It offers get/find/add/update,
and a commit that either writes everything staged in the unit or nothing.
SQLAlchemy failures are rolled back and surfaced as ``StoreError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, col

from app.exceptions import StoreError
from app.models.leave import LeaveRequest
from app.services.audit import StatusHistoryRecorder

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class Repository(Generic[ModelT]):
    """CRUD primitives for one table, bound to a session."""

    def __init__(self, session: AsyncSession, model: type[ModelT], unit: UnitOfWork) -> None:
        self._session = session
        self._model = model
        self._unit = unit

    async def get(self, entity_id: int) -> ModelT | None:
        """Fetch by primary key. Returns None if not found."""
        pk = col(self._model.id)  # type: ignore[attr-defined]
        try:
            result = await self._session.execute(select(self._model).where(pk == entity_id))
        except SQLAlchemyError as exc:
            await self._unit.rollback()
            raise StoreError(f"Failed to load {self._model.__name__} {entity_id}") from exc
        return result.scalar_one_or_none()

    async def find(self, *criteria: Any, order_by: Sequence[Any] = ()) -> list[ModelT]:
        """Return every row matching all of ``criteria``."""
        query = select(self._model).where(*criteria)
        if order_by:
            query = query.order_by(*order_by)
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as exc:
            await self._unit.rollback()
            raise StoreError(f"Failed to query {self._model.__name__}") from exc
        return list(result.scalars().all())

    def add(self, entity: ModelT) -> None:
        """Stage a new row. Its id is assigned on flush or commit."""
        self._session.add(entity)
        self._unit.track_write()

    def update(self, entity: ModelT) -> None:
        """Stage changes made to a loaded row."""
        self._session.add(entity)
        self._unit.track_write()


class UnitOfWork:
    """Transaction boundary around the leave request and status history tables.

    Use as an async context manager: anything not committed when the block
    exits with an exception is rolled back.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.leave_requests: Repository[LeaveRequest] = Repository(session, LeaveRequest, self)
        self.audit = StatusHistoryRecorder(session, on_write=self.track_write, on_error=self.rollback)
        self._pending_writes = 0

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()

    def track_write(self) -> None:
        self._pending_writes += 1

    async def flush(self) -> None:
        """Send staged writes without committing, so new rows get their ids."""
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            await self.rollback()
            raise StoreError("Failed to write leave changes") from exc

    async def commit(self) -> int:
        """Commit the unit and return how many rows it wrote."""
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.rollback()
            raise StoreError("Failed to commit leave changes") from exc
        written, self._pending_writes = self._pending_writes, 0
        return written

    async def rollback(self) -> None:
        self._pending_writes = 0
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
