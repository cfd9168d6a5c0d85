"""Explicit presence wrappers for partial updates.

A patch field is either ``Provided(value)`` (the caller sent the key, possibly
with an empty or null value) or ``NOT_PROVIDED`` (the key was absent). Code
handling a patch branches on that state instead of on truthiness.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Provided(Generic[T]):
    """A field the caller sent, carrying the raw value (may be None or "")."""

    value: T


class _NotProvided:
    """Marker type of ``NOT_PROVIDED``."""

    _instance = None

    def __new__(cls) -> "_NotProvided":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_PROVIDED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_NotProvided":
        return self

    def __deepcopy__(self, memo: Any) -> "_NotProvided":
        return self


NOT_PROVIDED = _NotProvided()

Presence = Union[Provided[T], _NotProvided]


def is_provided(field: "Presence[Any]") -> bool:
    """Whether a patch field was sent by the caller."""
    return isinstance(field, Provided)
