"""Event models a contact can be linked to."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from granthub.models._base import Base, TeamBase

if TYPE_CHECKING:
    from granthub.models.contact import Contact


class Event(TeamBase):
    """An event organized by a team."""

    __tablename__ = "event"

    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    event_contacts: Mapped[List["EventContact"]] = relationship(
        "EventContact",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )
    registrations: Mapped[List["EventRegistration"]] = relationship(
        "EventRegistration",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )


class EventRole(TeamBase):
    """A role a contact can take at an event (speaker, volunteer, ...)."""

    __tablename__ = "event_role"

    name: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String, nullable=True)


class EventContact(Base):
    """A contact assigned to an event, optionally with a role."""

    __tablename__ = "event_contact"
    __table_args__ = (UniqueConstraint("event_id", "contact_id", name="uq_event_contact"),)

    event_id: Mapped[UUID] = mapped_column(
        ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    contact_id: Mapped[UUID] = mapped_column(
        ForeignKey("contact.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_role_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("event_role.id", ondelete="SET NULL"), nullable=True, index=True
    )

    event: Mapped["Event"] = relationship("Event", back_populates="event_contacts", lazy="noload")
    contact: Mapped["Contact"] = relationship(
        "Contact", back_populates="event_contacts", lazy="noload"
    )
    event_role: Mapped[Optional["EventRole"]] = relationship("EventRole", lazy="noload")


class EventRegistration(Base):
    """A public registration for an event, linked to a contact once matched."""

    __tablename__ = "event_registration"

    event_id: Mapped[UUID] = mapped_column(
        ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    contact_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("contact.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)

    event: Mapped["Event"] = relationship("Event", back_populates="registrations", lazy="noload")
    contact: Mapped[Optional["Contact"]] = relationship(
        "Contact", back_populates="event_registrations", lazy="noload"
    )
