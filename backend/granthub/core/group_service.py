"""Group management and module permissions."""

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from granthub import crud, schemas
from granthub.core.config import settings
from granthub.core.exceptions import GroupNotFoundException, PermissionException
from granthub.core.logging import logger
from granthub.core.shared_models import AppModule, Roles
from granthub.db.unit_of_work import UnitOfWork
from granthub.models.group import Group

group_logger = logger.with_context(component="group_service")


def _to_schema(group: Group) -> schemas.Group:
    return schemas.Group(
        id=group.id,
        team_id=group.team_id,
        name=group.name,
        description=group.description,
        can_access_all_contacts=group.can_access_all_contacts,
        is_default=group.is_default,
        modules=[module.module for module in group.modules],
        user_ids=[membership.user_id for membership in group.user_groups],
        created_at=group.created_at,
        modified_at=group.modified_at,
    )


def is_admin(roles: Optional[Sequence[str]]) -> bool:
    """Whether the caller holds the platform Admin role."""
    return bool(roles) and Roles.ADMIN.value in [str(getattr(r, "value", r)) for r in roles]


class GroupService:
    """Service for team groups, memberships, module grants and field-access rules."""

    async def ensure_default_group(self, db: AsyncSession, team_id: UUID) -> Group:
        """Return the team's default group, creating it on first use."""
        group = await crud.group.get_default(db, team_id)
        if group is not None:
            return group

        group = await crud.group.create(
            db,
            obj_in={
                "name": settings.DEFAULT_GROUP_NAME,
                "description": "Created automatically for every team",
                "is_default": True,
            },
            team_id=team_id,
        )
        group_logger.with_context(team_id=str(team_id)).info("Created default group")
        return group

    async def list_groups(self, db: AsyncSession, team_id: UUID) -> list[schemas.Group]:
        """All groups of a team."""
        await self.ensure_default_group(db, team_id)
        groups = await crud.group.get_multi_with_relations(db, team_id)
        return [_to_schema(group) for group in groups]

    async def get_group(self, db: AsyncSession, group_id: UUID, team_id: UUID) -> schemas.Group:
        """One group of a team."""
        group = await crud.group.get_with_relations(db, group_id, team_id)
        if group is None:
            raise GroupNotFoundException()
        return _to_schema(group)

    async def create_group(
        self, db: AsyncSession, team_id: UUID, group_in: schemas.GroupCreate
    ) -> schemas.Group:
        """Create a group with its modules and initial members."""
        async with UnitOfWork(db) as uow:
            group = await crud.group.create(
                uow.session,
                obj_in=group_in.model_dump(
                    include={"name", "description", "can_access_all_contacts"}
                ),
                team_id=team_id,
                uow=uow,
            )
            await uow.flush()
            await crud.group.set_modules(
                uow.session,
                group=group,
                modules=[module.value for module in group_in.modules],
                uow=uow,
            )
            await crud.group.add_members(
                uow.session, group_id=group.id, user_ids=group_in.user_ids, uow=uow
            )
            await uow.commit()

        return await self.get_group(db, group.id, team_id)

    async def update_group(
        self,
        db: AsyncSession,
        group_id: UUID,
        team_id: UUID,
        group_in: schemas.GroupUpdate,
    ) -> schemas.Group:
        """Update a group; modules are replaced when given."""
        async with UnitOfWork(db) as uow:
            group = await crud.group.get_with_relations(uow.session, group_id, team_id)
            if group is None:
                raise GroupNotFoundException()

            fields = group_in.model_dump(exclude_unset=True, exclude={"modules"})
            await crud.group.update(uow.session, db_obj=group, obj_in=fields, uow=uow)
            if group_in.modules is not None:
                await crud.group.set_modules(
                    uow.session,
                    group=group,
                    modules=[module.value for module in group_in.modules],
                    uow=uow,
                )
            await uow.commit()

        return await self.get_group(db, group_id, team_id)

    async def delete_group(self, db: AsyncSession, group_id: UUID, team_id: UUID) -> None:
        """Delete a group; its contacts become unassigned. The default group cannot be deleted."""
        group = await crud.group.get_with_relations(db, group_id, team_id)
        if group is None:
            raise GroupNotFoundException()
        if group.is_default:
            raise PermissionException("The default group cannot be deleted")
        await crud.group.remove(db, id=group_id, team_id=team_id)

    async def add_users(
        self, db: AsyncSession, group_id: UUID, team_id: UUID, user_ids: list[UUID]
    ) -> schemas.Group:
        """Add users to a group; existing members are skipped."""
        if await crud.group.get_with_relations(db, group_id, team_id) is None:
            raise GroupNotFoundException()
        await crud.group.add_members(db, group_id=group_id, user_ids=user_ids)
        return await self.get_group(db, group_id, team_id)

    async def remove_users(
        self, db: AsyncSession, group_id: UUID, team_id: UUID, user_ids: list[UUID]
    ) -> schemas.Group:
        """Remove users from a group."""
        if await crud.group.get_with_relations(db, group_id, team_id) is None:
            raise GroupNotFoundException()
        await crud.group.remove_members(db, group_id=group_id, user_ids=user_ids)
        return await self.get_group(db, group_id, team_id)

    async def get_user_groups(
        self, db: AsyncSession, user_id: UUID, team_id: UUID
    ) -> list[Group]:
        """Groups of the team the user belongs to."""
        return await crud.group.get_user_groups(db, user_id=user_id, team_id=team_id)

    async def get_user_module_access(
        self, db: AsyncSession, user_id: Optional[UUID], team_id: UUID
    ) -> list[AppModule]:
        """Modules granted to the user through any of their groups."""
        if user_id is None:
            return []
        granted = {
            module.module
            for group in await self.get_user_groups(db, user_id, team_id)
            for module in group.modules
        }
        return [module for module in AppModule if module.value in granted]

    async def has_module_access(
        self,
        db: AsyncSession,
        team_id: UUID,
        user_id: Optional[UUID],
        module: AppModule,
        roles: Optional[Sequence[str]] = None,
    ) -> bool:
        """Whether the caller may use ``module``. No user denies, Admin allows."""
        if user_id is None:
            return False
        if is_admin(roles):
            return True
        return module in await self.get_user_module_access(db, user_id, team_id)

    async def get_field_access_rules(
        self, db: AsyncSession, team_id: UUID
    ) -> list[schemas.FieldAccessRule]:
        """Field-access rules of a team, one entry per restricted field."""
        grouped: dict[str, list[UUID]] = {}
        for rule in await crud.contact_field_access.get_multi_by_team(db, team_id):
            grouped.setdefault(rule.field_key, []).append(rule.group_id)
        return [
            schemas.FieldAccessRule(field_key=key, group_ids=group_ids)
            for key, group_ids in grouped.items()
        ]

    async def set_field_access(
        self, db: AsyncSession, team_id: UUID, field_key: str, group_ids: list[UUID]
    ) -> schemas.FieldAccessRule:
        """Replace the groups allowed to see one field; an empty list lifts the restriction."""
        known = await crud.group.get_ids_in_team(db, team_id, group_ids)
        if len(known) != len(set(group_ids)):
            raise GroupNotFoundException()

        rules = await crud.contact_field_access.replace_for_field(
            db, team_id=team_id, field_key=field_key, group_ids=group_ids
        )
        group_logger.with_context(team_id=str(team_id)).info(
            f"Field access for '{field_key}' set to {len(rules)} group(s)"
        )
        return schemas.FieldAccessRule(field_key=field_key, group_ids=[r.group_id for r in rules])


group_service = GroupService()
