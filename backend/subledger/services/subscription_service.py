"""Subscription Service — pass-through facade over SubscriptionRepository.

Invariants:
    - Each method maps 1:1 onto one repository call
    - Repository outcomes (values and SubledgerError subclasses) pass through unchanged

Design Decisions:
    - Kept as a seam for future cross-cutting concerns; holds no business rules today
"""

from subledger.core.domain_types import (
    NewSubscription, Subscription, SubscriptionFilter, SubscriptionId,
    SubscriptionPatch, SummaryQuery, SummaryResult,
)
from subledger.core.repository_protocols import SubscriptionRepository


class SubscriptionService:
    """Application-facing operations on subscriptions."""

    def __init__(self, repository: SubscriptionRepository):
        self._repository = repository

    async def create_subscription(self, data: NewSubscription) -> Subscription:
        return await self._repository.create(data)

    async def get_subscription(self, subscription_id: SubscriptionId) -> Subscription:
        return await self._repository.get_by_id(subscription_id)

    async def update_subscription(
        self, subscription_id: SubscriptionId, patch: SubscriptionPatch,
    ) -> None:
        await self._repository.update(subscription_id, patch)

    async def delete_subscription(self, subscription_id: SubscriptionId) -> None:
        await self._repository.delete(subscription_id)

    async def list_subscriptions(
        self, filters: SubscriptionFilter,
    ) -> list[Subscription]:
        return await self._repository.list(filters)

    async def get_summary(self, query: SummaryQuery) -> SummaryResult:
        return await self._repository.get_summary(query)
