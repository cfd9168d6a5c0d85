"""Dependencies that are used in the API endpoints."""

from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from granthub.api.context import ApiContext
from granthub.core.exceptions import PermissionException
from granthub.core.group_service import group_service
from granthub.core.logging import logger
from granthub.core.shared_models import AppModule


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the database handle opened in the application lifespan.

    Yields:
    ------
        AsyncSession: An async database session

    """
    async for db in request.app.state.db.get_db():
        yield db


async def get_context(
    request: Request,
    x_team_id: UUID = Header(..., alias="X-Team-ID"),
    x_user_id: Optional[UUID] = Header(None, alias="X-User-ID"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
    x_user_roles: Optional[str] = Header(None, alias="X-User-Roles"),
) -> ApiContext:
    """Build the API context from the identity headers set by the gateway.

    Args:
    ----
        request (Request): The incoming request.
        x_team_id (UUID): Team the request acts on.
        x_user_id (Optional[UUID]): Acting user, absent for anonymous calls.
        x_user_name (Optional[str]): Display name of the acting user, stored in audit entries.
        x_user_roles (Optional[str]): Comma separated platform roles.

    Returns:
    -------
        ApiContext: The context of the request.

    """
    request_id = getattr(request.state, "request_id", "unknown")
    roles = [role.strip() for role in (x_user_roles or "").split(",") if role.strip()]

    base_logger = logger.with_context(
        request_id=request_id,
        team_id=str(x_team_id),
        user_id=str(x_user_id) if x_user_id else "anonymous",
    )

    return ApiContext(
        request_id=request_id,
        team_id=x_team_id,
        user_id=x_user_id,
        user_name=x_user_name,
        roles=roles,
        logger=base_logger,
    )


def require_module(module: AppModule):
    """Dependency factory rejecting callers without access to a team module.

    Callers without a user are rejected; Admins always pass.
    """

    async def _require_module(
        db: AsyncSession = Depends(get_db),
        ctx: ApiContext = Depends(get_context),
    ) -> ApiContext:
        if not await group_service.has_module_access(
            db, ctx.team_id, ctx.user_id, module, roles=ctx.roles
        ):
            ctx.logger.warning(f"Denied access to module {module.value}")
            raise PermissionException(f"No access to the {module.value} module")
        return ctx

    return _require_module
