"""Subscription Routes — CRUD and the cost summary over /api/v1/subscriptions.

Invariants:
    - Bodies and query strings are validated by Pydantic/FastAPI before the
      handler runs; malformed ids, dates or user ids are 400s
    - Handlers only translate HTTP shapes to domain types and back; every
      outcome (404, 409, 5xx) comes from a SubledgerError raised below
    - /summary is registered before /{subscription_id}

Design Decisions:
    - One SqlSubscriptionRepository per request, sharing the request's session
    - Empty query-string filters count as absent (?service_name= lists everything)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.config import get_settings
from subledger.core.domain_types import (
    SubscriptionFilter, SubscriptionId, SummaryQuery, UserId, from_optional,
)
from subledger.infrastructure.database import get_db
from subledger.infrastructure.subscription_repository import SqlSubscriptionRepository
from subledger.schemas.subscription import (
    IsoDate, MessageResponse, SubscriptionCreate, SubscriptionResponse,
    SubscriptionUpdate, SummaryResponse,
)
from subledger.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


def get_subscription_service(
    db: AsyncSession = Depends(get_db),
) -> SubscriptionService:
    repository = SqlSubscriptionRepository(
        db, timeout_seconds=get_settings().store_timeout_seconds,
    )
    return SubscriptionService(repository)


def _user_id_filter(user_id: UUID | None):
    return from_optional(UserId(user_id) if user_id else None)


def _service_name_filter(service_name: str | None):
    name = (service_name or "").strip()
    return from_optional(name or None)


@router.post(
    "", response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_subscription(
    body: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a subscription record."""
    subscription = await service.create_subscription(body.to_domain())
    logger.info(
        f"Subscription created successfully: {subscription.id}",
        extra={"subscription_id": subscription.id, "user_id": subscription.user_id},
    )
    return SubscriptionResponse.model_validate(subscription)


@router.get("", response_model=list[SubscriptionResponse])
async def list_subscriptions(
    user_id: UUID | None = Query(None),
    service_name: str | None = Query(None, max_length=255),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """List subscriptions, newest first, optionally filtered by user and service."""
    filters = SubscriptionFilter(
        user_id=_user_id_filter(user_id),
        service_name=_service_name_filter(service_name),
    )
    subscriptions = await service.list_subscriptions(filters)
    return [SubscriptionResponse.model_validate(s) for s in subscriptions]


@router.get(
    "/summary", response_model=SummaryResponse,
    response_model_exclude_unset=True,
)
async def get_summary(
    start_date: IsoDate | None = Query(None, description="YYYY-MM-DD"),
    end_date: IsoDate | None = Query(None, description="YYYY-MM-DD"),
    user_id: UUID | None = Query(None),
    service_name: str | None = Query(None, max_length=255),
    include_subscriptions: bool = Query(False),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Total price of subscriptions active at any point in [start_date, end_date]."""
    query = SummaryQuery(
        start_date=from_optional(start_date),
        end_date=from_optional(end_date),
        user_id=_user_id_filter(user_id),
        service_name=_service_name_filter(service_name),
        include_subscriptions=include_subscriptions,
    )
    summary = await service.get_summary(query)
    if summary.subscriptions is None:
        return SummaryResponse(total_cost=summary.total_cost)
    return SummaryResponse(
        total_cost=summary.total_cost,
        subscriptions=[
            SubscriptionResponse.model_validate(s) for s in summary.subscriptions
        ],
    )


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
async def get_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Get a subscription by id."""
    subscription = await service.get_subscription(SubscriptionId(subscription_id))
    return SubscriptionResponse.model_validate(subscription)


@router.put("/{subscription_id}", response_model=MessageResponse)
async def update_subscription(
    subscription_id: UUID,
    body: SubscriptionUpdate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Apply a sparse patch; omitted fields keep their values."""
    await service.update_subscription(SubscriptionId(subscription_id), body.to_patch())
    logger.info(
        f"Subscription updated successfully: {subscription_id}",
        extra={"subscription_id": subscription_id},
    )
    return MessageResponse(message="Subscription updated successfully")


@router.delete("/{subscription_id}", response_model=MessageResponse)
async def delete_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Hard-delete a subscription."""
    await service.delete_subscription(SubscriptionId(subscription_id))
    logger.info(
        f"Subscription deleted successfully: {subscription_id}",
        extra={"subscription_id": subscription_id},
    )
    return MessageResponse(message="Subscription deleted successfully")
