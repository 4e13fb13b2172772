"""Summary Window — inclusive interval-overlap rule for cost summaries.

Invariants:
    - A subscription's active interval is [start_date, end_date], with
      end_date=None meaning open-ended
    - Both window bounds are inclusive: a subscription ending on the window
      start, or starting on the window end, overlaps
    - Only end_date nullability is special-cased; start_date is always set
    - An unbounded side of the window places no constraint on that side
    - start > end is not rejected; the rule is applied literally

Design Decisions:
    - Python rendition of the rule lives here so the SQL predicates
      (infrastructure/subscription_queries.py) can be checked against it
"""

from dataclasses import dataclass
from datetime import date

from subledger.core.domain_types import UNSET, SummaryQuery, Unset, is_set


@dataclass(frozen=True)
class SummaryWindow:
    """Optional inclusive [start, end] date window."""
    start: date | Unset = UNSET
    end: date | Unset = UNSET

    @classmethod
    def from_query(cls, query: SummaryQuery) -> "SummaryWindow":
        return cls(start=query.start_date, end=query.end_date)

    @property
    def has_start(self) -> bool:
        return is_set(self.start)

    @property
    def has_end(self) -> bool:
        return is_set(self.end)

    @property
    def is_unbounded(self) -> bool:
        return not (self.has_start or self.has_end)

    def overlaps(self, start_date: date, end_date: date | None) -> bool:
        """True if [start_date, end_date or +inf] intersects the window."""
        if self.has_end and start_date > self.end:
            return False
        if self.has_start and end_date is not None and end_date < self.start:
            return False
        return True
