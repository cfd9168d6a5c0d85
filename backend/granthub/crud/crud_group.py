"""CRUD operations for groups."""

from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from granthub.crud._base_team import CRUDBaseTeam
from granthub.db.unit_of_work import UnitOfWork
from granthub.models.group import Group, GroupModule, UserGroup
from granthub.schemas.group import GroupCreate, GroupUpdate


class CRUDGroup(CRUDBaseTeam[Group, GroupCreate, GroupUpdate]):
    """CRUD operations for groups and their memberships."""

    def _get_group_query_with_relations(self):
        return select(Group).options(selectinload(Group.user_groups), selectinload(Group.modules))

    async def get_with_relations(
        self, db: AsyncSession, id: UUID, team_id: UUID
    ) -> Optional[Group]:
        """Get a group of the team with members and modules, or None."""
        stmt = (
            self._get_group_query_with_relations()
            .where(Group.id == id, Group.team_id == team_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get_multi_with_relations(self, db: AsyncSession, team_id: UUID) -> list[Group]:
        """All groups of a team with members and modules, default group first."""
        stmt = (
            self._get_group_query_with_relations()
            .where(Group.team_id == team_id)
            .order_by(Group.is_default.desc(), Group.name)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return list(result.unique().scalars().all())

    async def get_default(self, db: AsyncSession, team_id: UUID) -> Optional[Group]:
        """The team's default group, if it was created."""
        stmt = (
            select(Group)
            .where(Group.team_id == team_id, Group.is_default.is_(True))
            .order_by(Group.created_at)
        )
        result = await db.execute(stmt.limit(1))
        return result.scalars().first()

    async def get_ids_in_team(
        self, db: AsyncSession, team_id: UUID, ids: list[UUID]
    ) -> set[UUID]:
        """Subset of ``ids`` that are groups of the team."""
        if not ids:
            return set()
        stmt = select(Group.id).where(Group.team_id == team_id, Group.id.in_(ids))
        result = await db.execute(stmt)
        return set(result.scalars().all())

    async def get_user_groups(
        self, db: AsyncSession, *, user_id: UUID, team_id: UUID
    ) -> list[Group]:
        """Groups of a team the user is a member of, with their modules."""
        stmt = (
            select(Group)
            .join(UserGroup, UserGroup.group_id == Group.id)
            .options(selectinload(Group.modules))
            .where(UserGroup.user_id == user_id, Group.team_id == team_id)
            .order_by(Group.name)
        )
        result = await db.execute(stmt)
        return list(result.unique().scalars().all())

    async def get_member_ids(self, db: AsyncSession, group_id: UUID) -> set[UUID]:
        """User ids that are members of a group."""
        result = await db.execute(select(UserGroup.user_id).where(UserGroup.group_id == group_id))
        return set(result.scalars().all())

    async def add_members(
        self,
        db: AsyncSession,
        *,
        group_id: UUID,
        user_ids: list[UUID],
        uow: Optional[UnitOfWork] = None,
    ) -> int:
        """Add users to a group, skipping existing members. Returns the number added."""
        existing = await self.get_member_ids(db, group_id)
        new_ids = [user_id for user_id in dict.fromkeys(user_ids) if user_id not in existing]
        db.add_all([UserGroup(user_id=user_id, group_id=group_id) for user_id in new_ids])

        if not uow:
            await db.commit()

        return len(new_ids)

    async def remove_members(
        self,
        db: AsyncSession,
        *,
        group_id: UUID,
        user_ids: list[UUID],
        uow: Optional[UnitOfWork] = None,
    ) -> int:
        """Remove users from a group. Returns the number removed."""
        if not user_ids:
            return 0
        result = await db.execute(
            delete(UserGroup)
            .where(UserGroup.group_id == group_id, UserGroup.user_id.in_(user_ids))
            .execution_options(synchronize_session=False)
        )

        if not uow:
            await db.commit()

        return result.rowcount or 0

    async def set_modules(
        self,
        db: AsyncSession,
        *,
        group: Group,
        modules: list[str],
        uow: Optional[UnitOfWork] = None,
    ) -> None:
        """Replace the modules granted to a group."""
        await db.execute(
            delete(GroupModule)
            .where(GroupModule.group_id == group.id)
            .execution_options(synchronize_session=False)
        )
        db.add_all(
            [GroupModule(group_id=group.id, module=module) for module in dict.fromkeys(modules)]
        )

        if not uow:
            await db.commit()


group = CRUDGroup(Group)
