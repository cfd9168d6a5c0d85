"""Postal code centroid reference data."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from granthub.models._base import Base


class PostalCodeCentroid(Base):
    """Latitude/longitude of a (country, postal code) pair, imported from GeoNames."""

    __tablename__ = "postal_code_centroid"
    __table_args__ = (
        UniqueConstraint("country_code", "postal_code", name="uq_postal_code_centroid"),
    )

    country_code: Mapped[str] = mapped_column(String(2), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    latitude: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=False)
    longitude: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=False)
    place_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_name1: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_code1: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_name2: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_code2: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_name3: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_code3: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    accuracy: Mapped[Optional[int]] = mapped_column(nullable=True)
