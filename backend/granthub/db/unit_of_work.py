"""Unit of work wrapping one database transaction."""

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from granthub.models._base import Base


class UnitOfWork:
    """Transaction boundary for multi-step writes.

    Row mutations go straight to ``session``. Audit entries are collected with
    ``record()`` and only added to the session on ``commit()``, so a write and
    its audit trail are persisted together or not at all. Leaving the context
    without committing (or with an exception) rolls everything back.

    Example:
    -------
        async with UnitOfWork(db) as uow:
            uow.session.add(contact)
            uow.record(change_log_entry)
            await uow.commit()

    """

    def __init__(self, session: AsyncSession):
        """Bind the unit of work to a session."""
        self.session = session
        self._committed = False
        self._audit_entries: list[Base] = []

    async def __aenter__(self) -> "UnitOfWork":
        """Enter the context."""
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        """Roll back when leaving without a commit or on error."""
        if exc_type is not None or not self._committed:
            await self.rollback()

    @property
    def pending_audit_entries(self) -> list[Base]:
        """Audit entries that will be written on commit."""
        return list(self._audit_entries)

    def record(self, entry: Base) -> None:
        """Queue an audit entry for the commit."""
        self._audit_entries.append(entry)

    async def flush(self) -> None:
        """Flush pending row mutations (assigns primary keys, surfaces constraint errors)."""
        await self.session.flush()

    async def commit(self) -> None:
        """Write queued audit entries and commit the transaction."""
        if self._audit_entries:
            self.session.add_all(self._audit_entries)
            self._audit_entries = []
        await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        """Discard queued audit entries and roll back the transaction."""
        self._audit_entries = []
        await self.session.rollback()
