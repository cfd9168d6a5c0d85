"""Append-only audit trail of contact changes."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import crud, schemas
from granthub.core.datetime_utils import to_iso_string
from granthub.core.shared_models import ChangeAction
from granthub.db.unit_of_work import UnitOfWork
from granthub.models.contact_change_log import ContactChangeLog


def encode_value(value: Any) -> Optional[str]:
    """JSON-encode a value for storage; None stays NULL."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = to_iso_string(value)
    elif isinstance(value, Enum):
        value = value.value
    return json.dumps(to_jsonable_python(value), ensure_ascii=False, sort_keys=True)


def decode_value(value: Optional[str]) -> Any:
    """Decode a stored value; text that is not JSON is returned as is."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError:
        return value


class ContactChangeLogService:
    """Writes change log entries into a unit of work and reads them back."""

    def log_field_update(
        self,
        contact_id: UUID,
        field_key: str,
        old_value: Any,
        new_value: Any,
        user_id: Optional[UUID],
        user_name: Optional[str],
        uow: UnitOfWork,
    ) -> ContactChangeLog:
        """Record a before/after entry for one field; persisted when ``uow`` commits."""
        entry = ContactChangeLog(
            contact_id=contact_id,
            action=ChangeAction.UPDATED.value,
            field_name=field_key,
            old_value=encode_value(old_value),
            new_value=encode_value(new_value),
            user_id=user_id,
            user_name=user_name,
            position=len(uow.pending_audit_entries),
        )
        uow.record(entry)
        return entry

    def log_contact_creation(
        self,
        contact_id: UUID,
        user_id: Optional[UUID],
        user_name: Optional[str],
        uow: UnitOfWork,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ContactChangeLog:
        """Record the creation of a contact; ``metadata`` is stored as the new value."""
        entry = ContactChangeLog(
            contact_id=contact_id,
            action=ChangeAction.CREATED.value,
            new_value=encode_value(metadata) if metadata else None,
            user_id=user_id,
            user_name=user_name,
            position=len(uow.pending_audit_entries),
        )
        uow.record(entry)
        return entry

    async def get_contact_change_logs(
        self, db: AsyncSession, contact_id: UUID, team_id: UUID
    ) -> list[schemas.ContactChangeLog]:
        """Change history of a team's contact, newest first."""
        entries = await crud.contact_change_log.get_for_contact(
            db, contact_id=contact_id, team_id=team_id
        )
        return [
            schemas.ContactChangeLog(
                id=entry.id,
                contact_id=entry.contact_id,
                action=entry.action,
                field_name=entry.field_name,
                old_value=decode_value(entry.old_value),
                new_value=decode_value(entry.new_value),
                user_id=entry.user_id,
                user_name=entry.user_name,
                created_at=entry.created_at,
            )
            for entry in entries
        ]


contact_change_log_service = ContactChangeLogService()
