"""Subscription Queries — predicate presence and order, not exact SQL text."""

from datetime import date
from uuid import uuid4

from subledger.core.domain_types import (
    UNSET, SubscriptionFilter, SummaryQuery, UserId,
)
from subledger.infrastructure.subscription_queries import (
    PredicateBuilder, duplicate_predicates, list_predicates,
    select_subscriptions, select_total_cost, summary_predicates,
)
from subledger.models.subscription import SubscriptionRecord

START = date(2024, 1, 20)
END = date(2024, 1, 25)


def _params(stmt) -> list:
    return list(stmt.compile().params.values())


def test_no_filters_adds_no_predicates():
    assert list_predicates(SubscriptionFilter()) == []
    assert summary_predicates(SummaryQuery()) == []


def test_unfiltered_select_has_no_where_clause():
    sql = str(select_subscriptions([]))
    assert "WHERE" not in sql
    assert "ORDER BY subscriptions.created_at DESC" in sql


def test_list_filters_are_conjunctive_in_fixed_order():
    uid = UserId(uuid4())
    preds = list_predicates(SubscriptionFilter(user_id=uid, service_name="Netflix"))
    assert len(preds) == 2
    assert "subscriptions.user_id" in str(preds[0])
    assert "subscriptions.service_name" in str(preds[1])
    sql = str(select_subscriptions(preds))
    assert " AND " in sql


def test_single_filter_adds_single_predicate():
    preds = list_predicates(SubscriptionFilter(service_name="Netflix"))
    assert len(preds) == 1
    assert _params(select_subscriptions(preds)) == ["Netflix"]


def test_full_window_adds_end_then_start_predicates():
    preds = summary_predicates(SummaryQuery(start_date=START, end_date=END))
    assert len(preds) == 2
    assert "subscriptions.start_date <=" in str(preds[0])
    assert "subscriptions.end_date IS NULL" in str(preds[1])
    assert "subscriptions.end_date >=" in str(preds[1])
    assert _params(select_subscriptions(preds)) == [END, START]


def test_start_only_window():
    preds = summary_predicates(SummaryQuery(start_date=START))
    assert len(preds) == 1
    assert "subscriptions.end_date IS NULL" in str(preds[0])
    assert "subscriptions.start_date" not in str(preds[0])


def test_end_only_window():
    preds = summary_predicates(SummaryQuery(end_date=END))
    assert len(preds) == 1
    assert "subscriptions.start_date <=" in str(preds[0])
    assert "end_date" not in str(preds[0])


def test_summary_filters_follow_window_predicates():
    uid = UserId(uuid4())
    preds = summary_predicates(SummaryQuery(
        start_date=START, end_date=END, user_id=uid, service_name="Netflix",
    ))
    assert len(preds) == 4
    assert "subscriptions.user_id" in str(preds[2])
    assert "subscriptions.service_name" in str(preds[3])
    params = _params(select_subscriptions(preds))
    assert params[:2] == [END, START]
    assert params[3] == "Netflix"


def test_total_cost_coalesces_to_zero():
    sql = str(select_total_cost([]))
    assert "coalesce(sum(subscriptions.price)" in sql


def test_duplicate_predicates_use_exact_equality():
    uid = UserId(uuid4())
    preds = duplicate_predicates(uid, "Netflix", START)
    assert len(preds) == 3
    assert all(" = " in str(p) for p in preds)
    assert "subscriptions.start_date" in str(preds[2])


def test_builder_skips_unset_values_and_keeps_none():
    builder = PredicateBuilder()
    builder.where_equal(SubscriptionRecord.service_name, UNSET)
    assert len(builder) == 0
    builder.where_equal(SubscriptionRecord.end_date, None)
    assert len(builder) == 1
    assert "IS NULL" in str(builder.build()[0])
