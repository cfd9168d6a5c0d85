"""Contact models."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from granthub.models._base import Base, TeamBase

if TYPE_CHECKING:
    from granthub.models.contact_change_log import ContactChangeLog
    from granthub.models.event import EventContact, EventRegistration
    from granthub.models.group import Group


class Contact(TeamBase):
    """A person tracked by a team's CRM."""

    __tablename__ = "contact"
    __table_args__ = (Index("ix_contact_team_created_at", "team_id", "created_at"),)

    name: Mapped[str] = mapped_column(String, nullable=False)
    pronouns: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    signal: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Restricted demographic fields
    gender: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gender_request_preference: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_bipoc: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    racism_request_preference: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    other_margins: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    onboarding_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    break_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    country_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(9, 6), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(9, 6), nullable=True)

    group_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("group.id", ondelete="SET NULL"), nullable=True, index=True
    )

    group: Mapped[Optional["Group"]] = relationship("Group", lazy="noload")
    attributes: Mapped[List["ContactAttribute"]] = relationship(
        "ContactAttribute",
        back_populates="contact",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )
    social_links: Mapped[List["ContactSocialLink"]] = relationship(
        "ContactSocialLink",
        back_populates="contact",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )
    event_contacts: Mapped[List["EventContact"]] = relationship(
        "EventContact",
        back_populates="contact",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )
    event_registrations: Mapped[List["EventRegistration"]] = relationship(
        "EventRegistration",
        back_populates="contact",
        lazy="noload",
        passive_deletes=True,
    )
    change_logs: Mapped[List["ContactChangeLog"]] = relationship(
        "ContactChangeLog",
        back_populates="contact",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )


# Authoritative guard for team-scoped email uniqueness
Index("uq_contact_team_email", Contact.team_id, func.lower(Contact.email), unique=True)


class ContactAttribute(Base):
    """Typed key/value extension of a contact.

    Which value columns are populated depends on `type`:
    STRING -> string_value; NUMBER -> number_value (+ string_value);
    DATE -> date_value (+ ISO string_value); LOCATION -> location_label/latitude/longitude.
    """

    __tablename__ = "contact_attribute"
    __table_args__ = (UniqueConstraint("contact_id", "key", name="uq_contact_attribute_key"),)

    contact_id: Mapped[UUID] = mapped_column(
        ForeignKey("contact.id", ondelete="CASCADE"), nullable=False, index=True
    )
    key: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    string_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    number_value: Mapped[Optional[Decimal]] = mapped_column(Numeric, nullable=True)
    date_value: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    location_label: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(9, 6), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(9, 6), nullable=True)

    contact: Mapped["Contact"] = relationship(
        "Contact", back_populates="attributes", lazy="noload"
    )


class ContactSocialLink(Base):
    """A social media handle of a contact, one per platform."""

    __tablename__ = "contact_social_link"
    __table_args__ = (
        UniqueConstraint("contact_id", "platform", name="uq_contact_social_link_platform"),
    )

    contact_id: Mapped[UUID] = mapped_column(
        ForeignKey("contact.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    handle: Mapped[str] = mapped_column(String(255), nullable=False)

    contact: Mapped["Contact"] = relationship(
        "Contact", back_populates="social_links", lazy="noload"
    )
