"""Subscription Queries — composes optional filters into conjunctive predicates.

Invariants:
    - Predicates are appended in a fixed order: window end, window start,
      user_id, service_name
    - An absent (UNSET) filter adds no predicate for its dimension, never a
      match-all wildcard or a match-nothing clause
    - Bound values are attached to their predicate; SQLAlchemy renders the
      placeholders at compile time, so adding or dropping a predicate cannot
      shift another predicate's parameter
    - Listings are ordered created_at DESC, id DESC

Design Decisions:
    - SQL derived from SummaryWindow so the Python overlap rule and the SQL
      predicates share one definition of the bounds
    - Builders return Select objects; execution stays in the repository
"""

from datetime import date
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, func, or_, select

from subledger.core.domain_types import (
    SubscriptionFilter, SummaryQuery, UserId, is_set,
)
from subledger.core.summary_window import SummaryWindow
from subledger.models.subscription import SubscriptionRecord


class PredicateBuilder:
    """Accumulates conjunctive predicates in insertion order."""

    def __init__(self) -> None:
        self._predicates: list[ColumnElement[bool]] = []

    def where(self, predicate: ColumnElement[bool]) -> "PredicateBuilder":
        self._predicates.append(predicate)
        return self

    def where_equal(self, column: Any, value: object) -> "PredicateBuilder":
        """Add `column = value` only when value is present."""
        if is_set(value):
            self._predicates.append(column == value)
        return self

    def where_window(self, window: SummaryWindow) -> "PredicateBuilder":
        """Add the inclusive overlap predicates for a date window."""
        if window.has_end:
            self.where(SubscriptionRecord.start_date <= window.end)
        if window.has_start:
            self.where(or_(
                SubscriptionRecord.end_date.is_(None),
                SubscriptionRecord.end_date >= window.start,
            ))
        return self

    def where_filter(self, filters: SubscriptionFilter) -> "PredicateBuilder":
        self.where_equal(SubscriptionRecord.user_id, filters.user_id)
        self.where_equal(SubscriptionRecord.service_name, filters.service_name)
        return self

    def build(self) -> list[ColumnElement[bool]]:
        return list(self._predicates)

    def __len__(self) -> int:
        return len(self._predicates)


def list_predicates(filters: SubscriptionFilter) -> list[ColumnElement[bool]]:
    return PredicateBuilder().where_filter(filters).build()


def summary_predicates(query: SummaryQuery) -> list[ColumnElement[bool]]:
    return (
        PredicateBuilder()
        .where_window(SummaryWindow.from_query(query))
        .where_filter(query.filter)
        .build()
    )


def duplicate_predicates(
    user_id: UserId, service_name: str, start_date: date,
) -> list[ColumnElement[bool]]:
    """Exact triple equality, not an overlap test."""
    return (
        PredicateBuilder()
        .where_equal(SubscriptionRecord.user_id, user_id)
        .where_equal(SubscriptionRecord.service_name, service_name)
        .where_equal(SubscriptionRecord.start_date, start_date)
        .build()
    )


def select_subscriptions(predicates: list[ColumnElement[bool]]) -> Select:
    stmt = select(SubscriptionRecord)
    if predicates:
        stmt = stmt.where(and_(*predicates))
    return stmt.order_by(
        SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc(),
    )


def select_total_cost(predicates: list[ColumnElement[bool]]) -> Select:
    stmt = select(
        func.coalesce(func.sum(SubscriptionRecord.price), 0).label("total_cost"),
    )
    if predicates:
        stmt = stmt.where(and_(*predicates))
    return stmt
