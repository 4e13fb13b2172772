"""Subscription Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - SubscriptionCreate: service_name stripped and non-empty, price > 0 with at
      most 2 decimal places, end_date (if given) not before start_date
    - Request dates are strict YYYY-MM-DD text; numbers and datetimes are rejected
    - SubscriptionUpdate is a sparse patch: only keys present in the body are
      applied; "end_date": null clears the end date, while null service_name or
      price is rejected; unknown keys are rejected
    - Money fields serialize to JSON numbers, not strings

Design Decisions:
    - model_fields_set distinguishes "absent" from "present as null"; the
      schema maps it onto the UNSET-based SubscriptionPatch
    - from_attributes responses: domain dataclasses validate directly
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import (
    BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer,
    field_validator, model_validator,
)

from subledger.core.domain_types import (
    UNSET, NewSubscription, SubscriptionPatch, UserId,
)

Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json"),
]

PRICE_FIELD = dict(gt=0, max_digits=12, decimal_places=2)

ISO_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def parse_iso_date(v: object) -> date:
    """Accept only YYYY-MM-DD text (or a date object from Python callers)."""
    if isinstance(v, date) and not isinstance(v, datetime):
        return v
    if not isinstance(v, str) or not ISO_DATE_PATTERN.match(v):
        raise ValueError("date must be in YYYY-MM-DD format")
    return date.fromisoformat(v)


IsoDate = Annotated[date, BeforeValidator(parse_iso_date)]


def _strip_service_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("service_name cannot be empty or whitespace")
    return v


class SubscriptionCreate(BaseModel):
    """Subscription creation body."""
    service_name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(**PRICE_FIELD)
    user_id: UUID
    start_date: IsoDate
    end_date: IsoDate | None = None

    @field_validator("service_name")
    @classmethod
    def strip_service_name(cls, v: str) -> str:
        return _strip_service_name(v)

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def to_domain(self) -> NewSubscription:
        return NewSubscription(
            service_name=self.service_name,
            price=self.price,
            user_id=UserId(self.user_id),
            start_date=self.start_date,
            end_date=self.end_date,
        )


class SubscriptionUpdate(BaseModel):
    """Sparse patch body. Omitted keys are left unchanged."""
    model_config = ConfigDict(extra="forbid")

    service_name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, **PRICE_FIELD)
    end_date: IsoDate | None = None

    @field_validator("service_name")
    @classmethod
    def strip_service_name(cls, v: str | None) -> str | None:
        return _strip_service_name(v)

    @model_validator(mode="after")
    def required_fields_not_null(self):
        for name in ("service_name", "price"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def to_patch(self) -> SubscriptionPatch:
        provided = self.model_fields_set
        return SubscriptionPatch(
            service_name=self.service_name if "service_name" in provided else UNSET,
            price=self.price if "price" in provided else UNSET,
            end_date=self.end_date if "end_date" in provided else UNSET,
        )


class SubscriptionResponse(BaseModel):
    """Public-facing subscription record."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    service_name: str
    price: Money
    user_id: UUID
    start_date: date
    end_date: date | None = None
    created_at: datetime
    updated_at: datetime


class SummaryResponse(BaseModel):
    """Total cost over the window; the matching rows only when requested."""
    total_cost: Money
    subscriptions: list[SubscriptionResponse] | None = None


class MessageResponse(BaseModel):
    message: str
