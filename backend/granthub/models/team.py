"""Team model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from granthub.models._base import Base


class Team(Base):
    """A grant-making body using the CRM; the tenant boundary of all contact data."""

    __tablename__ = "team"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
