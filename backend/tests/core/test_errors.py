"""Error Hierarchy — status codes, categories and the REST envelope."""

from subledger.core.errors import (
    DatabaseError, ErrorCategory, ErrorContext, InvalidInputError,
    ResourceNotFoundError, StoreTimeoutError, SubledgerError,
    SubscriptionConflictError,
)


def test_not_found_is_404_and_records_subscription_id():
    err = ResourceNotFoundError("Subscription", "abc")
    assert err.http_status == 404
    assert err.category == ErrorCategory.RESOURCE_NOT_FOUND
    assert err.context.subscription_id == "abc"
    assert "abc" in err.message


def test_conflict_is_409_not_500():
    err = SubscriptionConflictError("dup")
    assert err.http_status == 409
    assert err.code == "SUBSCRIPTION_CONFLICT"
    assert err.category == ErrorCategory.CONFLICT


def test_invalid_input_is_400():
    err = InvalidInputError("bad", field="price")
    assert err.http_status == 400
    assert err.field == "price"


def test_database_error_is_500_with_operation():
    err = DatabaseError("boom", "create")
    assert err.http_status == 500
    assert err.context.operation == "create"
    assert err.message == "Database create failed: boom"


def test_store_timeout_is_a_database_error():
    err = StoreTimeoutError("list", 0.5)
    assert isinstance(err, DatabaseError)
    assert isinstance(err, SubledgerError)
    assert err.http_status == 504
    assert err.category == ErrorCategory.TIMEOUT
    assert "0.5s" in err.message


def test_to_response_envelope():
    ctx = ErrorContext(subscription_id="s1", user_id="u1")
    body = SubscriptionConflictError("dup", ctx).to_response()
    error = body["error"]
    assert error["code"] == "SUBSCRIPTION_CONFLICT"
    assert error["category"] == "conflict"
    assert error["severity"] == "warning"
    assert error["context"]["subscription_id"] == "s1"
    assert error["context"]["user_id"] == "u1"
    assert "timestamp" in error


def test_invalid_input_envelope_names_the_field():
    body = InvalidInputError("bad", field="query.start_date").to_response()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["category"] == "validation"
    assert body["error"]["field"] == "query.start_date"
