"""Subscription Repository — SQL-backed implementation of SubscriptionRepository.

Invariants:
    - Every public method raises only SubledgerError subclasses
    - create() checks the (user_id, service_name, start_date) triple before
      inserting, and still maps a uniqueness violation on INSERT to
      SubscriptionConflictError (two callers can pass the pre-check together)
    - id/created_at/updated_at come from the store (RETURNING), never the caller
    - update() writes only present patch fields and always refreshes updated_at;
      zero affected rows is the only not-found signal
    - delete() is a hard delete; zero affected rows means not found
    - Each operation runs under the repository's deadline; caller cancellation
      and deadline expiry abort the in-flight statement and roll back
    - No retries

Design Decisions:
    - Check-then-insert is not wrapped in a transaction: the UNIQUE constraint
      is authoritative, the pre-check only yields a more specific message
    - populate_existing on reads: a session reused across calls never returns
      rows cached from before an UPDATE
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.core.domain_types import (
    NewSubscription, Subscription, SubscriptionFilter, SubscriptionId,
    SubscriptionPatch, SummaryQuery, SummaryResult, UserId,
)
from subledger.core.errors import (
    DatabaseError, ErrorContext, ResourceNotFoundError, StoreTimeoutError,
    SubledgerError, SubscriptionConflictError,
)
from subledger.infrastructure.database import is_unique_violation
from subledger.infrastructure.subscription_queries import (
    duplicate_predicates, list_predicates, select_subscriptions,
    select_total_cost, summary_predicates,
)
from subledger.models.subscription import SubscriptionRecord

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value: object) -> Decimal:
    """Normalize a store numeric (Decimal, float, int, None) to 2 places."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


def to_subscription(record: SubscriptionRecord) -> Subscription:
    return Subscription(
        id=SubscriptionId(record.id),
        service_name=record.service_name,
        price=to_money(record.price),
        user_id=UserId(record.user_id),
        start_date=record.start_date,
        end_date=record.end_date,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class SqlSubscriptionRepository:
    """SubscriptionRepository over an SQLAlchemy AsyncSession."""

    def __init__(self, db: AsyncSession, timeout_seconds: float | None = None):
        self._db = db
        self._timeout = timeout_seconds

    @asynccontextmanager
    async def _guard(
        self, operation: str, context: ErrorContext | None = None,
    ) -> AsyncGenerator[None, None]:
        """Apply the deadline and normalize store errors for one operation."""
        ctx = context or ErrorContext()
        ctx.operation = operation
        try:
            async with asyncio.timeout(self._timeout):
                yield
        except SubledgerError:
            await self._db.rollback()
            raise
        except asyncio.CancelledError:
            await self._db.rollback()
            logger.info(
                f"Store {operation} cancelled by caller",
                extra={"operation": operation, "subscription_id": ctx.subscription_id},
            )
            raise
        except TimeoutError:
            await self._db.rollback()
            logger.error(
                f"Store {operation} timed out after {self._timeout}s",
                extra={"operation": operation, "subscription_id": ctx.subscription_id},
            )
            raise StoreTimeoutError(operation, self._timeout or 0, ctx)
        except IntegrityError as e:
            await self._db.rollback()
            if is_unique_violation(e):
                logger.warning(
                    f"Uniqueness violation during {operation}",
                    extra={"operation": operation, "user_id": ctx.user_id},
                )
                raise SubscriptionConflictError(
                    "Subscription already exists for this user and service", ctx,
                )
            logger.error(f"Integrity error during {operation}: {e}")
            raise DatabaseError("Integrity constraint violated", operation, ctx)
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(
                f"Error during subscription {operation}: {e}",
                extra={"operation": operation, "subscription_id": ctx.subscription_id},
            )
            raise DatabaseError("Database operation failed", operation, ctx)

    # ─── Duplicate guard ────────────────────────────────────────

    async def find_existing(
        self, user_id: UserId, service_name: str, start_date: date,
    ) -> Subscription | None:
        """First row with exactly this (user, service, start date), or None."""
        stmt = (
            select_subscriptions(duplicate_predicates(user_id, service_name, start_date))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self._db.execute(stmt)
        record = result.scalars().first()
        return to_subscription(record) if record else None

    # ─── Operations ─────────────────────────────────────────────

    async def create(self, data: NewSubscription) -> Subscription:
        ctx = ErrorContext(user_id=str(data.user_id))
        async with self._guard("create", ctx):
            existing = await self.find_existing(
                data.user_id, data.service_name, data.start_date,
            )
            if existing is not None:
                raise SubscriptionConflictError(
                    f"Subscription already exists for user {data.user_id} "
                    f"to service {data.service_name} starting from "
                    f"{data.start_date.isoformat()}",
                    ctx,
                )
            stmt = (
                insert(SubscriptionRecord)
                .values(
                    service_name=data.service_name,
                    price=data.price,
                    user_id=data.user_id,
                    start_date=data.start_date,
                    end_date=data.end_date,
                )
                .returning(
                    SubscriptionRecord.id,
                    SubscriptionRecord.created_at,
                    SubscriptionRecord.updated_at,
                )
            )
            row = (await self._db.execute(stmt)).one()
            await self._db.commit()

        logger.info(
            f"Created subscription with ID: {row.id}",
            extra={"subscription_id": row.id, "user_id": data.user_id},
        )
        return Subscription(
            id=SubscriptionId(row.id),
            service_name=data.service_name,
            price=to_money(data.price),
            user_id=data.user_id,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def get_by_id(self, subscription_id: SubscriptionId) -> Subscription:
        ctx = ErrorContext(subscription_id=str(subscription_id))
        async with self._guard("get", ctx):
            stmt = (
                select(SubscriptionRecord)
                .where(SubscriptionRecord.id == subscription_id)
                .execution_options(populate_existing=True)
            )
            record = (await self._db.execute(stmt)).scalar_one_or_none()
            if record is None:
                raise ResourceNotFoundError("Subscription", str(subscription_id), ctx)
            return to_subscription(record)

    async def update(
        self, subscription_id: SubscriptionId, patch: SubscriptionPatch,
    ) -> None:
        ctx = ErrorContext(subscription_id=str(subscription_id))
        async with self._guard("update", ctx):
            values = patch.present_fields()
            values["updated_at"] = func.now()
            stmt = (
                update(SubscriptionRecord)
                .where(SubscriptionRecord.id == subscription_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = await self._db.execute(stmt)
            if result.rowcount == 0:
                raise ResourceNotFoundError("Subscription", str(subscription_id), ctx)
            await self._db.commit()

        logger.info(
            f"Updated subscription with ID: {subscription_id}",
            extra={"subscription_id": subscription_id},
        )

    async def delete(self, subscription_id: SubscriptionId) -> None:
        ctx = ErrorContext(subscription_id=str(subscription_id))
        async with self._guard("delete", ctx):
            stmt = (
                delete(SubscriptionRecord)
                .where(SubscriptionRecord.id == subscription_id)
                .execution_options(synchronize_session=False)
            )
            result = await self._db.execute(stmt)
            if result.rowcount == 0:
                raise ResourceNotFoundError("Subscription", str(subscription_id), ctx)
            await self._db.commit()

        logger.info(
            f"Deleted subscription with ID: {subscription_id}",
            extra={"subscription_id": subscription_id},
        )

    async def list(self, filters: SubscriptionFilter) -> list[Subscription]:
        async with self._guard("list"):
            subscriptions = await self._fetch(list_predicates(filters))

        logger.info(
            f"Listed {len(subscriptions)} subscriptions",
            extra={"count": len(subscriptions)},
        )
        return subscriptions

    async def get_summary(self, query: SummaryQuery) -> SummaryResult:
        predicates = summary_predicates(query)
        async with self._guard("summary"):
            total = (await self._db.execute(select_total_cost(predicates))).scalar_one()
            subscriptions = (
                await self._fetch(predicates) if query.include_subscriptions else None
            )

        summary = SummaryResult(total_cost=to_money(total), subscriptions=subscriptions)
        logger.info(f"Calculated summary: total cost = {summary.total_cost}")
        return summary

    async def _fetch(self, predicates) -> list[Subscription]:
        stmt = select_subscriptions(predicates).execution_options(populate_existing=True)
        result = await self._db.execute(stmt)
        return [to_subscription(r) for r in result.scalars().all()]
