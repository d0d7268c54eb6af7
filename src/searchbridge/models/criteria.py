"""Criteria models — Fluent, storage-agnostic field predicates.

A criteria chain is built left to right::

    Criteria.where("message").is_("Test message").and_("rate").greater_than(5)

Every ``and_()`` / ``or_()`` call appends a new link to the shared chain and
returns it, so the whole chain is reachable from any of its links.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class OperationKey(str, Enum):
    """Predicate operators.

    ``WITHIN`` and ``BBOX`` are geo operators compiled into the post filter;
    all others are compiled into the query.
    """

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    EXPRESSION = "expression"
    BETWEEN = "between"
    FUZZY = "fuzzy"
    IN = "in"
    NOT_IN = "not_in"
    LESS = "less"
    LESS_EQUAL = "less_equal"
    GREATER = "greater"
    GREATER_EQUAL = "greater_equal"
    WITHIN = "within"
    BBOX = "bbox"


@dataclass(frozen=True)
class CriteriaEntry:
    key: OperationKey
    value: Any


class Criteria:
    """One link of a predicate chain, bound to a single field."""

    def __init__(
        self,
        field: str,
        *,
        chain: list[Criteria] | None = None,
        is_or: bool = False,
    ) -> None:
        if not field:
            raise ValueError("Field name for criteria must not be empty")
        self.field = field
        self.is_or = is_or
        self.negating = False
        self.boost_value: float | None = None
        self.query_entries: list[CriteriaEntry] = []
        self.filter_entries: list[CriteriaEntry] = []
        self._chain = chain if chain is not None else []
        self._chain.append(self)

    @classmethod
    def where(cls, field: str) -> Criteria:
        """Start a new chain on ``field``."""
        return cls(field)

    @property
    def chain(self) -> list[Criteria]:
        return list(self._chain)

    def and_(self, field: str) -> Criteria:
        return Criteria(field, chain=self._chain)

    def or_(self, field: str) -> Criteria:
        return Criteria(field, chain=self._chain, is_or=True)

    def not_(self) -> Criteria:
        self.negating = True
        return self

    def boost(self, boost: float) -> Criteria:
        if boost < 0:
            raise ValueError("Boost must not be negative")
        self.boost_value = boost
        return self

    # ── Query operators ──────────────────────────────────────────────────

    def is_(self, value: Any) -> Criteria:
        return self._add_query(OperationKey.EQUALS, value)

    def contains(self, value: str) -> Criteria:
        self._reject_whitespace(value, "*", "*")
        return self._add_query(OperationKey.CONTAINS, value)

    def starts_with(self, value: str) -> Criteria:
        self._reject_whitespace(value, "", "*")
        return self._add_query(OperationKey.STARTS_WITH, value)

    def ends_with(self, value: str) -> Criteria:
        self._reject_whitespace(value, "*", "")
        return self._add_query(OperationKey.ENDS_WITH, value)

    def expression(self, value: str) -> Criteria:
        return self._add_query(OperationKey.EXPRESSION, value)

    def fuzzy(self, value: str) -> Criteria:
        return self._add_query(OperationKey.FUZZY, value)

    def between(self, lower: Any, upper: Any) -> Criteria:
        if lower is None and upper is None:
            raise ValueError("Range [* TO *] is not allowed")
        return self._add_query(OperationKey.BETWEEN, (lower, upper))

    def less_than(self, value: Any) -> Criteria:
        return self._add_query(OperationKey.LESS, self._required(value))

    def less_than_equal(self, value: Any) -> Criteria:
        return self._add_query(OperationKey.LESS_EQUAL, self._required(value))

    def greater_than(self, value: Any) -> Criteria:
        return self._add_query(OperationKey.GREATER, self._required(value))

    def greater_than_equal(self, value: Any) -> Criteria:
        return self._add_query(OperationKey.GREATER_EQUAL, self._required(value))

    def in_(self, values: Iterable[Any]) -> Criteria:
        return self._add_query(OperationKey.IN, list(values))

    def not_in(self, values: Iterable[Any]) -> Criteria:
        return self._add_query(OperationKey.NOT_IN, list(values))

    # ── Filter operators ─────────────────────────────────────────────────

    def within(self, location: Any, distance: str) -> Criteria:
        """Match documents whose geo point lies within ``distance`` of ``location``.

        Args:
            location: ``{"lat": .., "lon": ..}``, ``"lat,lon"`` or a geohash.
            distance: Distance with unit, e.g. ``"10km"``.
        """
        if location is None or not distance:
            raise ValueError("Location and distance are required for within()")
        self.filter_entries.append(CriteriaEntry(OperationKey.WITHIN, (location, distance)))
        return self

    def bounded_by(self, top_left: Any, bottom_right: Any) -> Criteria:
        if top_left is None or bottom_right is None:
            raise ValueError("Both corners are required for bounded_by()")
        self.filter_entries.append(CriteriaEntry(OperationKey.BBOX, (top_left, bottom_right)))
        return self

    # ── Helpers ──────────────────────────────────────────────────────────

    def _add_query(self, key: OperationKey, value: Any) -> Criteria:
        self.query_entries.append(CriteriaEntry(key, value))
        return self

    @staticmethod
    def _required(value: Any) -> Any:
        if value is None:
            raise ValueError("Value for range criteria must not be None")
        return value

    @staticmethod
    def _reject_whitespace(value: str, prefix: str, suffix: str) -> None:
        if value is not None and any(ch.isspace() for ch in str(value)):
            raise ValueError(
                f"Cannot construct query '{prefix}{value}{suffix}'. "
                "Use expression() or multiple clauses instead."
            )

    def __repr__(self) -> str:
        return f"Criteria(field={self.field!r}, or={self.is_or}, negating={self.negating})"
