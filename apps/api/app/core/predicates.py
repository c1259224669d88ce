"""Typed predicate tree for stream queries.

A predicate is a tree of Leaf comparisons combined by And / Or nodes.
FeedQuery wraps the top-level And together with the auxiliary joins the
tree needs (team/user link tables). Every node is frozen: builders return
new objects instead of mutating shared state.

Null handling follows SQL: Leaf(f, IN, ...) and Leaf(f, NOT_IN, ...)
never match rows where f is NULL, so callers pair them with explicit
IS NULL / IS NOT NULL leaves.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Union


class Op(str, Enum):
    """Leaf comparison operators."""
    EQ = "="
    NE = "!="
    GT = ">"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


@dataclass(frozen=True)
class Leaf:
    field: str
    op: Op
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"field": self.field, "op": self.op.value, "value": value}


@dataclass(frozen=True)
class And:
    items: tuple[Predicate, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"and": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class Or:
    items: tuple[Predicate, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"or": [item.to_dict() for item in self.items]}


Predicate = Union[Leaf, And, Or]


# =============================================================================
# Constructors
# =============================================================================

def eq(field_name: str, value: Any) -> Leaf:
    return Leaf(field_name, Op.EQ, value)


def ne(field_name: str, value: Any) -> Leaf:
    return Leaf(field_name, Op.NE, value)


def gt(field_name: str, value: Any) -> Leaf:
    return Leaf(field_name, Op.GT, value)


def in_(field_name: str, values: Iterable[Any]) -> Leaf:
    return Leaf(field_name, Op.IN, tuple(values))


def not_in(field_name: str, values: Iterable[Any]) -> Leaf:
    return Leaf(field_name, Op.NOT_IN, tuple(values))


def is_null(field_name: str) -> Leaf:
    return Leaf(field_name, Op.IS_NULL)


def not_null(field_name: str) -> Leaf:
    return Leaf(field_name, Op.NOT_NULL)


def all_of(*items: Predicate) -> And:
    return And(tuple(items))


def any_of(*items: Predicate) -> Or:
    return Or(tuple(items))


# =============================================================================
# Query
# =============================================================================

@dataclass(frozen=True)
class Join:
    """Auxiliary relation the predicate refers to (e.g. "teams", "users")."""
    name: str


@dataclass(frozen=True)
class FeedQuery:
    """Top-level AND of conditions plus required joins."""
    where: And = field(default_factory=And)
    joins: tuple[Join, ...] = ()
    distinct: bool = False

    def with_condition(self, predicate: Predicate) -> FeedQuery:
        return replace(self, where=And(self.where.items + (predicate,)))

    def with_join(self, join: Join) -> FeedQuery:
        if join in self.joins:
            return self
        return replace(self, joins=self.joins + (join,))

    def with_distinct(self) -> FeedQuery:
        return replace(self, distinct=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "where": self.where.to_dict(),
            "joins": [j.name for j in self.joins],
            "distinct": self.distinct,
        }
