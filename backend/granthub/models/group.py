"""Group models."""

from typing import TYPE_CHECKING, List
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from granthub.models._base import Base, TeamBase

if TYPE_CHECKING:
    from granthub.models.user import User


class Group(TeamBase):
    """A team-scoped set of users gating contact and field visibility."""

    __tablename__ = "group"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Members see contacts of every group, not only their own (field rules still apply)
    can_access_all_contacts: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user_groups: Mapped[List["UserGroup"]] = relationship(
        "UserGroup",
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )
    modules: Mapped[List["GroupModule"]] = relationship(
        "GroupModule",
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="noload",
        passive_deletes=True,
    )


class UserGroup(Base):
    """Membership of a user in a group."""

    __tablename__ = "user_group"
    __table_args__ = (UniqueConstraint("user_id", "group_id", name="uq_user_group"),)

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("group.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user: Mapped["User"] = relationship("User", back_populates="user_groups", lazy="noload")
    group: Mapped["Group"] = relationship("Group", back_populates="user_groups", lazy="noload")


class GroupModule(Base):
    """A team module (CRM, events, ...) granted to a group."""

    __tablename__ = "group_module"
    __table_args__ = (UniqueConstraint("group_id", "module", name="uq_group_module"),)

    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("group.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module: Mapped[str] = mapped_column(String, nullable=False)

    group: Mapped["Group"] = relationship("Group", back_populates="modules", lazy="noload")


class ContactFieldAccess(TeamBase):
    """Restricts one contact field (or profile attribute key) to a group.

    A field without rows is visible to everyone; a field with rows is visible to
    members of any of the listed groups.
    """

    __tablename__ = "contact_field_access"
    __table_args__ = (
        UniqueConstraint("team_id", "field_key", "group_id", name="uq_contact_field_access"),
    )

    field_key: Mapped[str] = mapped_column(String, nullable=False)
    group_id: Mapped[UUID] = mapped_column(
        ForeignKey("group.id", ondelete="CASCADE"), nullable=False, index=True
    )
