"""API endpoints for groups, memberships and field-access rules."""

from typing import List
from uuid import UUID

from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import schemas
from granthub.api import deps
from granthub.api.context import ApiContext
from granthub.api.router import TrailingSlashRouter
from granthub.core.group_service import group_service
from granthub.core.shared_models import AppModule

router = TrailingSlashRouter()

require_admin_module = deps.require_module(AppModule.ADMIN)


@router.get("/", response_model=List[schemas.Group])
async def list_groups(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> List[schemas.Group]:
    """List the team's groups, default group first."""
    return await group_service.list_groups(db, ctx.team_id)


@router.post("/", response_model=schemas.Group)
async def create_group(
    group_in: schemas.GroupCreate,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> schemas.Group:
    """Create a group with its modules and initial members."""
    group = await group_service.create_group(db, ctx.team_id, group_in)
    ctx.logger.info(f"Created group {group.id}")
    return group


@router.get("/field-access", response_model=List[schemas.FieldAccessRule])
async def get_field_access(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> List[schemas.FieldAccessRule]:
    """Field-access rules of the team."""
    return await group_service.get_field_access_rules(db, ctx.team_id)


@router.put("/field-access", response_model=schemas.FieldAccessRule)
async def set_field_access(
    rule_in: schemas.FieldAccessRule,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> schemas.FieldAccessRule:
    """Replace the groups allowed to see one field; an empty list lifts the restriction."""
    return await group_service.set_field_access(
        db, ctx.team_id, rule_in.field_key, rule_in.group_ids
    )


@router.get("/modules/me", response_model=schemas.ModuleAccess)
async def get_my_modules(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.ModuleAccess:
    """Modules the caller can use; Admins get every module."""
    if ctx.is_admin and ctx.has_user_context:
        return schemas.ModuleAccess(modules=list(AppModule))
    modules = await group_service.get_user_module_access(db, ctx.user_id, ctx.team_id)
    return schemas.ModuleAccess(modules=modules)


@router.get("/{group_id}", response_model=schemas.Group)
async def get_group(
    group_id: UUID = Path(..., description="The group id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> schemas.Group:
    """Get one group of the team."""
    return await group_service.get_group(db, group_id, ctx.team_id)


@router.patch("/{group_id}", response_model=schemas.Group)
async def update_group(
    group_in: schemas.GroupUpdate,
    group_id: UUID = Path(..., description="The group id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> schemas.Group:
    """Update a group; modules are replaced when given."""
    return await group_service.update_group(db, group_id, ctx.team_id, group_in)


@router.delete("/{group_id}")
async def delete_group(
    group_id: UUID = Path(..., description="The group id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> dict[str, str]:
    """Delete a group; its contacts become unassigned."""
    await group_service.delete_group(db, group_id, ctx.team_id)
    ctx.logger.info(f"Deleted group {group_id}")
    return {"status": "deleted"}


@router.post("/{group_id}/users", response_model=schemas.Group)
async def add_users(
    users_in: schemas.GroupUsers,
    group_id: UUID = Path(..., description="The group id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> schemas.Group:
    """Add users to a group; existing members are skipped."""
    return await group_service.add_users(db, group_id, ctx.team_id, users_in.user_ids)


@router.delete("/{group_id}/users", response_model=schemas.Group)
async def remove_users(
    users_in: schemas.GroupUsers,
    group_id: UUID = Path(..., description="The group id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_admin_module),
) -> schemas.Group:
    """Remove users from a group."""
    return await group_service.remove_users(db, group_id, ctx.team_id, users_in.user_ids)
