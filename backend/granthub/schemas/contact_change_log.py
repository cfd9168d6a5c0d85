"""Contact change log schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from granthub.core.shared_models import ChangeAction


class ContactChangeLog(BaseModel):
    """One audited change, with values decoded from their stored JSON form."""

    id: UUID
    contact_id: UUID
    action: ChangeAction
    field_name: Optional[str] = None
    old_value: Any = None
    new_value: Any = None
    user_id: Optional[UUID] = None
    user_name: Optional[str] = None
    created_at: datetime
