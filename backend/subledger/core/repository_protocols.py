"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All store IO is accessed through SubscriptionRepository
    - One concrete implementation, bound at startup by the shell

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Errors are part of the contract: implementations raise only SubledgerError
      subclasses (ResourceNotFoundError, SubscriptionConflictError, DatabaseError)
"""

from typing import Protocol

from subledger.core.domain_types import (
    NewSubscription, Subscription, SubscriptionFilter, SubscriptionId,
    SubscriptionPatch, SummaryQuery, SummaryResult,
)


class SubscriptionRepository(Protocol):
    """Contract for subscription persistence, implemented by shell."""
    async def create(self, data: NewSubscription) -> Subscription: ...
    async def get_by_id(self, subscription_id: SubscriptionId) -> Subscription: ...
    async def update(
        self, subscription_id: SubscriptionId, patch: SubscriptionPatch,
    ) -> None: ...
    async def delete(self, subscription_id: SubscriptionId) -> None: ...
    async def list(self, filters: SubscriptionFilter) -> list[Subscription]: ...
    async def get_summary(self, query: SummaryQuery) -> SummaryResult: ...
