"""Normalization and projection of typed contact profile attributes.

An attribute value is one of four closed variants (string, number, date,
location). Client input is normalized into those variants before storage and
stored rows are projected back into the API shape.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from granthub.core.datetime_utils import parse_datetime, to_iso_string
from granthub.core.shared_models import ContactAttributeType
from granthub.models import ContactAttribute
from granthub.schemas.contact import (
    DateProfileAttribute,
    LocationProfileAttribute,
    LocationValue as LocationValueOut,
    NumberProfileAttribute,
    ProfileAttribute,
    RawProfileAttribute,
    StringProfileAttribute,
)


@dataclass(frozen=True)
class StringValue:
    """Trimmed, non-empty text."""

    text: str


@dataclass(frozen=True)
class NumberValue:
    """Finite number kept as an exact decimal."""

    number: Decimal

    @property
    def text(self) -> str:
        """Plain decimal string form, e.g. ``"12.5"``."""
        return decimal_to_string(self.number)


@dataclass(frozen=True)
class DateValue:
    """Point in time (naive UTC, millisecond precision) with its ISO string."""

    moment: datetime

    @property
    def iso(self) -> str:
        """``YYYY-MM-DDTHH:MM:SS.mmmZ`` form."""
        return to_iso_string(self.moment)


@dataclass(frozen=True)
class LocationValue:
    """Place with at least one of label, latitude, longitude."""

    label: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None


AttributeValue = Union[StringValue, NumberValue, DateValue, LocationValue]


@dataclass(frozen=True)
class NormalizedAttribute:
    """A storage-ready profile attribute."""

    key: str
    value: AttributeValue

    @property
    def type(self) -> ContactAttributeType:
        """Attribute type derived from the value variant."""
        if isinstance(self.value, StringValue):
            return ContactAttributeType.STRING
        if isinstance(self.value, NumberValue):
            return ContactAttributeType.NUMBER
        if isinstance(self.value, DateValue):
            return ContactAttributeType.DATE
        return ContactAttributeType.LOCATION

    def to_columns(self) -> dict[str, Any]:
        """Column values of a ``contact_attribute`` row (without ids)."""
        columns: dict[str, Any] = {
            "key": self.key,
            "type": self.type.value,
            "string_value": None,
            "number_value": None,
            "date_value": None,
            "location_label": None,
            "latitude": None,
            "longitude": None,
        }
        value = self.value
        if isinstance(value, StringValue):
            columns["string_value"] = value.text
        elif isinstance(value, NumberValue):
            columns["number_value"] = value.number
            columns["string_value"] = value.text
        elif isinstance(value, DateValue):
            columns["date_value"] = value.moment
            columns["string_value"] = value.iso
        else:
            columns["location_label"] = value.label
            columns["latitude"] = value.latitude
            columns["longitude"] = value.longitude
        return columns

    def to_profile_attribute(self) -> ProfileAttribute:
        """API representation of the normalized value."""
        return _project(self.key, self.type, self.to_columns())


def decimal_to_string(value: Decimal) -> str:
    """Render a decimal without exponent or trailing zeros (``Decimal("1.50")`` -> ``"1.5"``)."""
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "") else text


def to_finite_decimal(value: Any) -> Optional[Decimal]:
    """Exact decimal of a finite number or numeric string; None otherwise, bools included."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def _normalize_value(type_: Optional[str], value: Any) -> Optional[AttributeValue]:
    if type_ == ContactAttributeType.STRING.value:
        if isinstance(value, str) and value.strip():
            return StringValue(value.strip())
        return None

    if type_ == ContactAttributeType.NUMBER.value:
        number = to_finite_decimal(value)
        return NumberValue(number) if number is not None else None

    if type_ == ContactAttributeType.DATE.value:
        if not isinstance(value, (str, datetime)):
            return None
        moment = parse_datetime(value)
        if moment is None:
            return None
        # Stored with the same precision as its ISO form
        return DateValue(moment.replace(microsecond=(moment.microsecond // 1000) * 1000))

    if type_ == ContactAttributeType.LOCATION.value:
        if isinstance(value, LocationValueOut):
            value = value.model_dump()
        if not isinstance(value, Mapping):
            return None
        label = value.get("label")
        label = label.strip() if isinstance(label, str) and label.strip() else None
        latitude = to_finite_decimal(value.get("latitude"))
        longitude = to_finite_decimal(value.get("longitude"))
        if label is None and latitude is None and longitude is None:
            return None
        return LocationValue(label=label, latitude=latitude, longitude=longitude)

    return None


def normalize_attributes(
    raw: Optional[Iterable[Union[RawProfileAttribute, Mapping[str, Any]]]],
) -> list[NormalizedAttribute]:
    """Normalize client attributes, silently dropping what cannot be stored.

    Keys are trimmed and deduplicated; the first entry that normalizes to a
    value wins, so an invalid first entry does not shadow a valid later one.
    """
    normalized: list[NormalizedAttribute] = []
    seen: set[str] = set()

    for entry in raw or ():
        if isinstance(entry, Mapping):
            key, type_, value = entry.get("key"), entry.get("type"), entry.get("value")
        else:
            key, type_, value = entry.key, entry.type, entry.value

        if not isinstance(key, str) or not key.strip():
            continue
        key = key.strip()
        if key in seen:
            continue

        if isinstance(type_, ContactAttributeType):
            type_ = type_.value
        normalized_value = _normalize_value(type_, value)
        if normalized_value is None:
            continue

        normalized.append(NormalizedAttribute(key=key, value=normalized_value))
        seen.add(key)

    return normalized


def _project(key: str, type_: str, columns: Mapping[str, Any]) -> Optional[ProfileAttribute]:
    if type_ == ContactAttributeType.STRING.value:
        if columns.get("string_value") is None:
            return None
        return StringProfileAttribute(key=key, value=columns["string_value"])

    if type_ == ContactAttributeType.NUMBER.value:
        if columns.get("number_value") is None:
            return None
        return NumberProfileAttribute(key=key, value=float(columns["number_value"]))

    if type_ == ContactAttributeType.DATE.value:
        if columns.get("date_value") is not None:
            return DateProfileAttribute(key=key, value=to_iso_string(columns["date_value"]))
        if columns.get("string_value"):
            return DateProfileAttribute(key=key, value=columns["string_value"])
        return None

    if type_ == ContactAttributeType.LOCATION.value:
        location = LocationValueOut(
            label=columns.get("location_label"),
            latitude=float(columns["latitude"]) if columns.get("latitude") is not None else None,
            longitude=(
                float(columns["longitude"]) if columns.get("longitude") is not None else None
            ),
        )
        if location.label is None and location.latitude is None and location.longitude is None:
            return None
        return LocationProfileAttribute(key=key, value=location)

    return None


def to_profile_attribute(row: ContactAttribute) -> Optional[ProfileAttribute]:
    """Project a stored attribute row into its API shape; None if the row holds no value."""
    return _project(row.key, row.type, _row_columns(row))


def _row_columns(row: ContactAttribute) -> dict[str, Any]:
    return {
        "string_value": row.string_value,
        "number_value": row.number_value,
        "date_value": row.date_value,
        "location_label": row.location_label,
        "latitude": row.latitude,
        "longitude": row.longitude,
    }


def _optional_decimal_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return decimal_to_string(value if isinstance(value, Decimal) else Decimal(str(value)))


def attribute_signature(
    source: Union[ContactAttribute, NormalizedAttribute],
) -> tuple[Optional[str], ...]:
    """Comparable form of every typed sub-field of an attribute.

    Two attributes with equal signatures hold the same value, regardless of
    how the database returned the numeric columns.
    """
    if isinstance(source, NormalizedAttribute):
        type_ = source.type.value
        columns = source.to_columns()
    else:
        type_ = source.type
        columns = _row_columns(source)

    date_value = columns["date_value"]
    return (
        type_,
        columns["string_value"],
        _optional_decimal_text(columns["number_value"]),
        to_iso_string(date_value) if date_value is not None else None,
        columns["location_label"],
        _optional_decimal_text(columns["latitude"]),
        _optional_decimal_text(columns["longitude"]),
    )


def attribute_audit_value(
    source: Union[ContactAttribute, NormalizedAttribute, None],
) -> Optional[dict[str, Any]]:
    """JSON-friendly value recorded in the change log for an attribute."""
    if source is None:
        return None
    if isinstance(source, NormalizedAttribute):
        projected = source.to_profile_attribute()
    else:
        projected = to_profile_attribute(source)
    if projected is None:
        return None
    return projected.model_dump(mode="json", exclude_none=True)
