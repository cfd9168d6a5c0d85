"""CRUD operations for the contact change log."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from granthub.models.contact import Contact
from granthub.models.contact_change_log import ContactChangeLog


class CRUDContactChangeLog:
    """Read access to the change log; entries are written through the unit of work."""

    async def get_for_contact(
        self, db: AsyncSession, *, contact_id: UUID, team_id: UUID, limit: int = 200
    ) -> list[ContactChangeLog]:
        """Entries of a team's contact, newest first."""
        stmt = (
            select(ContactChangeLog)
            .join(Contact, Contact.id == ContactChangeLog.contact_id)
            .where(ContactChangeLog.contact_id == contact_id, Contact.team_id == team_id)
            .order_by(
                ContactChangeLog.created_at.desc(),
                ContactChangeLog.position.desc(),
                ContactChangeLog.id.desc(),
            )
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())


contact_change_log = CRUDContactChangeLog()
