"""Contact change log model."""

from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from granthub.models._base import Base

if TYPE_CHECKING:
    from granthub.models.contact import Contact


class ContactChangeLog(Base):
    """Append-only audit record of one field-level change on a contact.

    ``old_value`` and ``new_value`` hold JSON-encoded values; NULL means "no value".
    The actor is denormalized so the trail survives user deletion.
    """

    __tablename__ = "contact_change_log"
    __table_args__ = (Index("ix_contact_change_log_contact_created", "contact_id", "created_at"),)

    contact_id: Mapped[UUID] = mapped_column(
        ForeignKey("contact.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    field_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[UUID]] = mapped_column(SQLAlchemyUUID, nullable=True)
    user_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # Order of the entry among those written by the same change
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    contact: Mapped["Contact"] = relationship(
        "Contact", back_populates="change_logs", lazy="noload"
    )
