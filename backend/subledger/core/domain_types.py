"""Domain Types — identity types, the UNSET marker, and request/result shapes.

Invariants:
    - SubscriptionId, UserId wrap UUIDs
    - A field typed `T | Unset` is absent when UNSET and present otherwise,
      even when the present value is None (end_date=None clears the end date)
    - SubscriptionPatch, SubscriptionFilter and SummaryQuery all use UNSET,
      never None, to mean "not provided"

Design Decisions:
    - Single-member Enum for UNSET: type checkers narrow `x is UNSET` and the
      sentinel survives copy/pickle as a singleton
    - Frozen dataclasses: request shapes are values, never mutated after parsing
"""

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Final, NewType, TypeVar
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

SubscriptionId = NewType("SubscriptionId", UUID)
UserId = NewType("UserId", UUID)


# ─── Tagged Optional ─────────────────────────────────────────────

class Unset(Enum):
    """Marker type for a field that was not provided."""
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = Unset.UNSET

T = TypeVar("T")


def is_set(value: object) -> bool:
    """True when value was provided (None counts as provided)."""
    return value is not UNSET


def from_optional(value: T | None) -> "T | Unset":
    """Map a None-means-absent value (query strings) onto UNSET."""
    return UNSET if value is None else value


# ─── Entity ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Subscription:
    """A persisted subscription record."""
    id: SubscriptionId
    service_name: str
    price: Decimal
    user_id: UserId
    start_date: date
    end_date: date | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NewSubscription:
    """Validated creation payload. Identifier and timestamps come from the store."""
    service_name: str
    price: Decimal
    user_id: UserId
    start_date: date
    end_date: date | None = None


# ─── Sparse Patch & Filters ──────────────────────────────────────

@dataclass(frozen=True)
class SubscriptionPatch:
    """Sparse update: only present fields are written."""
    service_name: str | Unset = UNSET
    price: Decimal | Unset = UNSET
    end_date: date | None | Unset = UNSET

    def present_fields(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if is_set(getattr(self, f.name))
        }

    def is_empty(self) -> bool:
        return not self.present_fields()


@dataclass(frozen=True)
class SubscriptionFilter:
    """Conjunctive list filter; UNSET dimensions add no predicate."""
    user_id: UserId | Unset = UNSET
    service_name: str | Unset = UNSET


@dataclass(frozen=True)
class SummaryQuery:
    """Cost summary request over an optional inclusive date window."""
    start_date: date | Unset = UNSET
    end_date: date | Unset = UNSET
    user_id: UserId | Unset = UNSET
    service_name: str | Unset = UNSET
    include_subscriptions: bool = False

    @property
    def filter(self) -> SubscriptionFilter:
        return SubscriptionFilter(
            user_id=self.user_id, service_name=self.service_name,
        )


@dataclass(frozen=True)
class SummaryResult:
    total_cost: Decimal
    subscriptions: list[Subscription] | None = None
