"""Subscription ORM — table `subscriptions`.

Invariants:
    - id is a UUID primary key generated on insert
    - UNIQUE (user_id, service_name, start_date) is the authoritative
      duplicate guard; the repository pre-check only gives an earlier error
    - end_date NULL means the subscription is still active
    - created_at/updated_at are server defaults; updated_at >= created_at

Design Decisions:
    - Numeric(12, 2) for price: summary totals are exact decimals
    - user_id is an opaque UUID, no foreign key (no user table in this service)
    - Index on user_id: list and summary filters are mostly per-user
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from subledger.db.base import Base

SUBSCRIPTION_TRIPLE_CONSTRAINT = "uq_subscriptions_user_service_start"


class SubscriptionRecord(Base):
    """Row model for a user's subscription to a service."""
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "service_name", "start_date",
            name=SUBSCRIPTION_TRIPLE_CONSTRAINT,
        ),
        Index("ix_subscriptions_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    service_name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
