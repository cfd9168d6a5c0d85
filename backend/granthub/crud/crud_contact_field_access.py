"""CRUD operations for contact field-access rules."""

from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from granthub.db.unit_of_work import UnitOfWork
from granthub.models.group import ContactFieldAccess


class CRUDContactFieldAccess:
    """CRUD operations for field-access rules.

    Rules are managed per field as a whole set, so there is no create/update
    schema pair.
    """

    async def get_multi_by_team(self, db: AsyncSession, team_id: UUID) -> list[ContactFieldAccess]:
        """All rules of a team."""
        stmt = (
            select(ContactFieldAccess)
            .where(ContactFieldAccess.team_id == team_id)
            .order_by(ContactFieldAccess.field_key)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def replace_for_field(
        self,
        db: AsyncSession,
        *,
        team_id: UUID,
        field_key: str,
        group_ids: list[UUID],
        uow: Optional[UnitOfWork] = None,
    ) -> list[ContactFieldAccess]:
        """Replace the groups allowed to see one field; an empty list lifts the restriction."""
        await db.execute(
            delete(ContactFieldAccess)
            .where(
                ContactFieldAccess.team_id == team_id,
                ContactFieldAccess.field_key == field_key,
            )
            .execution_options(synchronize_session=False)
        )
        rules = [
            ContactFieldAccess(team_id=team_id, field_key=field_key, group_id=group_id)
            for group_id in dict.fromkeys(group_ids)
        ]
        db.add_all(rules)

        if not uow:
            await db.commit()

        return rules


contact_field_access = CRUDContactFieldAccess()
