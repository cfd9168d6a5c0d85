"""Unified application context for API requests.

Combines the caller identity passed in by the gateway, logging and request
metadata into a single injectable dependency.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from granthub.core.logging import ContextualLogger
from granthub.core.shared_models import Roles


class ApiContext(BaseModel):
    """Unified context for API requests.

    Authentication happens upstream; the context only carries the identity it
    established. A request without a user id is anonymous and sees no
    restricted data.
    """

    # Request metadata
    request_id: str

    # Identity context
    team_id: UUID
    user_id: Optional[UUID] = None
    user_name: Optional[str] = None
    roles: list[str] = Field(default_factory=list)

    # Contextual logger with all dimensions pre-configured
    logger: ContextualLogger

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True  # For ContextualLogger

    @property
    def has_user_context(self) -> bool:
        """Whether a user is attached to the request."""
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        """Whether the caller holds the platform Admin role."""
        return Roles.ADMIN.value in self.roles

    def __str__(self) -> str:
        """String representation for logging."""
        return (
            f"ApiContext(request_id={self.request_id[:8]}..., "
            f"team={self.team_id}, user={self.user_id or 'anonymous'})"
        )
