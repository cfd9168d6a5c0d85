"""API endpoints for contacts."""

from typing import List, Optional
from uuid import UUID

from fastapi import Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import schemas
from granthub.api import deps
from granthub.api.context import ApiContext
from granthub.api.router import TrailingSlashRouter
from granthub.core.contact_change_log_service import contact_change_log_service
from granthub.core.contact_service import contact_service
from granthub.core.exceptions import ContactNotFoundException, PermissionException
from granthub.core.field_access_service import field_access_service
from granthub.core.shared_models import AppModule, ContactSubmodule

router = TrailingSlashRouter()

require_crm = deps.require_module(AppModule.CRM)


@router.get("/", response_model=List[schemas.Contact])
async def list_contacts(
    query: Optional[str] = Query(None, description="Case-insensitive text search"),
    filters: Optional[str] = Query(
        None,
        description="JSON array of filters, e.g. "
        '[{"type": "group", "group_id": "..."}, {"type": "createdAt", "from": "2024-01-01"}]',
    ),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> List[schemas.Contact]:
    """List the team's contacts visible to the caller, newest first."""
    parsed_filters = schemas.contact_filters_adapter.validate_json(filters) if filters else None
    return await contact_service.list_contacts(
        db,
        ctx.team_id,
        query=query,
        user_id=ctx.user_id,
        filters=parsed_filters,
        roles=ctx.roles,
        log=ctx.logger,
    )


@router.post("/", response_model=schemas.Contact)
async def create_contact(
    contact_in: schemas.ContactCreate,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> schemas.Contact:
    """Create a contact in the caller's team."""
    if contact_in.team_id != ctx.team_id:
        raise PermissionException("Contacts can only be created in your own team")

    contact = await contact_service.create_contact(
        db, contact_in, user_id=ctx.user_id, user_name=ctx.user_name
    )
    policy = await field_access_service.resolve(db, ctx.team_id, ctx.user_id)
    return policy.redact(contact)


@router.delete("/")
async def delete_contacts(
    delete_in: schemas.DeleteContacts,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> dict[str, int]:
    """Delete contacts of the caller's team; ids of other teams are ignored."""
    deleted = await contact_service.delete_contacts(db, ctx.team_id, delete_in.ids)
    ctx.logger.info(f"Deleted {deleted} contact(s)")
    return {"deleted": deleted}


@router.get("/submodules", response_model=List[ContactSubmodule])
async def get_allowed_submodules(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> List[ContactSubmodule]:
    """Contact submodules the caller can open."""
    return await contact_service.get_allowed_submodules(db, ctx.team_id, ctx.user_id)


@router.get("/attribute-keys", response_model=List[str])
async def get_attribute_keys(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> List[str]:
    """Profile attribute keys used on the contacts visible to the caller."""
    return await contact_service.get_team_contact_attribute_keys(
        db, ctx.team_id, user_id=ctx.user_id, roles=ctx.roles
    )


@router.get("/{contact_id}", response_model=schemas.Contact)
async def get_contact(
    contact_id: UUID = Path(..., description="The contact id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> schemas.Contact:
    """Get one contact of the caller's team."""
    contact = await contact_service.get_contact_by_id(
        db, contact_id, ctx.team_id, user_id=ctx.user_id, roles=ctx.roles
    )
    if contact is None:
        raise ContactNotFoundException()
    return contact


@router.patch("/{contact_id}", response_model=schemas.Contact)
async def update_contact(
    contact_in: schemas.ContactBase,
    contact_id: UUID = Path(..., description="The contact id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> schemas.Contact:
    """Update the fields present in the payload; fields sent as null or "" are cleared."""
    if await contact_service.get_contact_by_id(
        db, contact_id, ctx.team_id, user_id=ctx.user_id, roles=ctx.roles
    ) is None:
        raise ContactNotFoundException()

    update = schemas.ContactUpdate(
        id=contact_id,
        team_id=ctx.team_id,
        **contact_in.model_dump(exclude_unset=True),
    )
    contact = await contact_service.update_contact(
        db, update, user_id=ctx.user_id, user_name=ctx.user_name
    )
    policy = await field_access_service.resolve(db, ctx.team_id, ctx.user_id)
    return policy.redact(contact)


@router.get("/{contact_id}/change-logs", response_model=List[schemas.ContactChangeLog])
async def get_change_logs(
    contact_id: UUID = Path(..., description="The contact id"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(require_crm),
) -> List[schemas.ContactChangeLog]:
    """Change history of a contact, newest first, without entries on hidden fields."""
    if await contact_service.get_contact_by_id(
        db, contact_id, ctx.team_id, user_id=ctx.user_id, roles=ctx.roles
    ) is None:
        raise ContactNotFoundException()

    entries = await contact_change_log_service.get_contact_change_logs(
        db, contact_id, ctx.team_id
    )
    policy = await field_access_service.resolve(db, ctx.team_id, ctx.user_id)
    return [entry for entry in entries if policy.can_see_change(entry.field_name)]
