"""User model."""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from granthub.models._base import Base

if TYPE_CHECKING:
    from granthub.models.group import UserGroup


class User(Base):
    """User model."""

    __tablename__ = "user"

    full_name: Mapped[str] = mapped_column(String, nullable=True)
    email: Mapped[str] = mapped_column(String, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    user_groups: Mapped[List["UserGroup"]] = relationship(
        "UserGroup", back_populates="user", cascade="all, delete-orphan", lazy="noload"
    )
