"""Domain Types — UNSET tagged optional, sparse patch and filter shapes."""

import copy
from datetime import date
from decimal import Decimal
from uuid import uuid4

from subledger.core.domain_types import (
    UNSET, SubscriptionFilter, SubscriptionId, SubscriptionPatch, SummaryQuery,
    UserId, from_optional, is_set,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert SubscriptionId(uid) == uid
    assert UserId(uid) == uid


def test_unset_is_not_none():
    assert UNSET is not None
    assert not is_set(UNSET)
    assert is_set(None)
    assert is_set(0)
    assert is_set("")


def test_unset_survives_copy():
    assert copy.deepcopy(UNSET) is UNSET
    assert repr(UNSET) == "UNSET"


def test_from_optional_maps_none_to_unset():
    assert from_optional(None) is UNSET
    assert from_optional("Netflix") == "Netflix"


def test_empty_patch_has_no_present_fields():
    patch = SubscriptionPatch()
    assert patch.present_fields() == {}
    assert patch.is_empty()


def test_patch_reports_only_present_fields():
    patch = SubscriptionPatch(price=Decimal("5.00"))
    assert patch.present_fields() == {"price": Decimal("5.00")}


def test_patch_end_date_none_is_a_present_clear():
    patch = SubscriptionPatch(end_date=None)
    assert patch.present_fields() == {"end_date": None}
    assert not patch.is_empty()


def test_patch_with_all_fields():
    patch = SubscriptionPatch(
        service_name="Spotify", price=Decimal("1.50"), end_date=date(2025, 1, 1),
    )
    assert set(patch.present_fields()) == {"service_name", "price", "end_date"}


def test_filter_defaults_to_unset():
    f = SubscriptionFilter()
    assert f.user_id is UNSET
    assert f.service_name is UNSET


def test_summary_query_exposes_its_filter():
    uid = UserId(uuid4())
    q = SummaryQuery(start_date=date(2024, 1, 1), user_id=uid)
    assert q.filter == SubscriptionFilter(user_id=uid)
    assert q.end_date is UNSET
    assert q.include_subscriptions is False
