"""A small immutable expression type for contact queries.

Filters are first expressed as predicates and only then compiled to
SQLAlchemy, which keeps the filter logic inspectable and testable without a
database:

    predicate = And((
        Compare("team_id", "eq", team_id),
        Exists("attributes", Compare("key", "eq", "role")),
    ))
    stmt = select(Contact).where(compile_predicate(predicate, Contact))

``evaluate`` applies the same predicate to in-memory objects.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Literal, Union

from sqlalchemy import and_, false, func, not_, or_, true
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql.elements import ColumnElement

CompareOp = Literal["eq", "ieq", "icontains", "in", "gte", "lte", "is_null"]


@dataclass(frozen=True)
class Compare:
    """Comparison of one column with a value."""

    field: str
    op: CompareOp
    value: Any = None


@dataclass(frozen=True)
class And:
    """All sub-predicates hold. Empty means true."""

    items: tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    """At least one sub-predicate holds. Empty means false."""

    items: tuple["Predicate", ...]


@dataclass(frozen=True)
class Not:
    """Negation of a predicate."""

    item: "Predicate"


@dataclass(frozen=True)
class Exists:
    """Some row of a one-to-many relation satisfies ``where``."""

    relation: str
    where: "Predicate"


@dataclass(frozen=True)
class MatchAll:
    """Always true."""


@dataclass(frozen=True)
class MatchNone:
    """Never true. Used to force an empty result when a filter cannot be resolved."""


Predicate = Union[Compare, And, Or, Not, Exists, MatchAll, MatchNone]


def all_of(predicates: Iterable[Predicate]) -> Predicate:
    """Conjunction with trivial simplification (MatchNone wins, MatchAll is dropped)."""
    items = []
    for predicate in predicates:
        if isinstance(predicate, MatchNone):
            return MatchNone()
        if isinstance(predicate, MatchAll):
            continue
        items.append(predicate)
    if not items:
        return MatchAll()
    if len(items) == 1:
        return items[0]
    return And(tuple(items))


def any_of(predicates: Iterable[Predicate]) -> Predicate:
    """Disjunction with trivial simplification (MatchAll wins, MatchNone is dropped)."""
    items = []
    for predicate in predicates:
        if isinstance(predicate, MatchAll):
            return MatchAll()
        if isinstance(predicate, MatchNone):
            continue
        items.append(predicate)
    if not items:
        return MatchNone()
    if len(items) == 1:
        return items[0]
    return Or(tuple(items))


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _compile_compare(predicate: Compare, model: type[DeclarativeBase]) -> ColumnElement[bool]:
    column = getattr(model, predicate.field)
    op, value = predicate.op, predicate.value

    if op == "eq":
        return column == value
    if op == "ieq":
        return func.lower(column) == str(value).lower()
    if op == "icontains":
        return column.ilike(f"%{_escape_like(str(value))}%", escape="\\")
    if op == "in":
        return column.in_(list(value))
    if op == "gte":
        return column >= value
    if op == "lte":
        return column <= value
    if op == "is_null":
        return column.is_(None)
    raise ValueError(f"Unsupported comparison operator: {op}")


def compile_predicate(predicate: Predicate, model: type[DeclarativeBase]) -> ColumnElement[bool]:
    """Translate a predicate into a SQLAlchemy boolean clause on ``model``."""
    if isinstance(predicate, MatchAll):
        return true()
    if isinstance(predicate, MatchNone):
        return false()
    if isinstance(predicate, Compare):
        return _compile_compare(predicate, model)
    if isinstance(predicate, And):
        if not predicate.items:
            return true()
        return and_(*(compile_predicate(item, model) for item in predicate.items))
    if isinstance(predicate, Or):
        if not predicate.items:
            return false()
        return or_(*(compile_predicate(item, model) for item in predicate.items))
    if isinstance(predicate, Not):
        return not_(compile_predicate(predicate.item, model))
    if isinstance(predicate, Exists):
        relationship = getattr(model, predicate.relation)
        target = relationship.property.mapper.class_
        return relationship.any(compile_predicate(predicate.where, target))
    raise TypeError(f"Not a predicate: {predicate!r}")


def _comparable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    return value


def _evaluate_compare(predicate: Compare, obj: Any) -> bool:
    actual = getattr(obj, predicate.field, None)
    op, value = predicate.op, predicate.value

    if op == "is_null":
        return actual is None
    if actual is None:
        return False
    if op == "eq":
        return _comparable(actual) == _comparable(value)
    if op == "ieq":
        return str(actual).lower() == str(value).lower()
    if op == "icontains":
        return str(value).lower() in str(actual).lower()
    if op == "in":
        return actual in list(value)
    if op in ("gte", "lte"):
        left, right = _comparable(actual), _comparable(value)
        if isinstance(left, datetime) != isinstance(right, datetime):
            return False
        return left >= right if op == "gte" else left <= right
    raise ValueError(f"Unsupported comparison operator: {op}")


def evaluate(predicate: Predicate, obj: Any) -> bool:
    """Apply a predicate to an in-memory object (ORM instance or any attribute holder)."""
    if isinstance(predicate, MatchAll):
        return True
    if isinstance(predicate, MatchNone):
        return False
    if isinstance(predicate, Compare):
        return _evaluate_compare(predicate, obj)
    if isinstance(predicate, And):
        return all(evaluate(item, obj) for item in predicate.items)
    if isinstance(predicate, Or):
        return any(evaluate(item, obj) for item in predicate.items)
    if isinstance(predicate, Not):
        return not evaluate(predicate.item, obj)
    if isinstance(predicate, Exists):
        return any(evaluate(predicate.where, row) for row in getattr(obj, predicate.relation) or ())
    raise TypeError(f"Not a predicate: {predicate!r}")
