"""Database Session Manager — store error normalization and health checks."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from subledger.core.errors import (
    DatabaseError, ResourceNotFoundError, SubscriptionConflictError,
)
from subledger.infrastructure.database import (
    DatabaseSessionManager, is_unique_violation,
)


class _PgUniqueViolation(Exception):
    sqlstate = "23505"


def _integrity(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO subscriptions ...", {}, orig)


@pytest.mark.parametrize("orig", [
    Exception("UNIQUE constraint failed: subscriptions.user_id"),
    Exception('duplicate key value violates unique constraint "uq_x"'),
    Exception("ERROR: 23505"),
    _PgUniqueViolation("violation"),
])
def test_unique_violation_signatures(orig):
    assert is_unique_violation(_integrity(orig))


def test_other_integrity_errors_are_not_unique_violations():
    assert not is_unique_violation(_integrity(Exception("NOT NULL constraint failed")))


def test_non_integrity_errors_are_not_unique_violations():
    assert not is_unique_violation(
        OperationalError("SELECT 1", {}, Exception("unique constraint")),
    )
    assert not is_unique_violation(ValueError("duplicate key"))


@pytest.fixture
async def manager():
    m = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await m.create_tables()
    yield m
    await m.dispose()


async def test_session_maps_unique_integrity_error_to_conflict(manager):
    with pytest.raises(SubscriptionConflictError):
        async with manager.session():
            raise _integrity(Exception("UNIQUE constraint failed"))


async def test_session_maps_operational_error_to_database_error(manager):
    with pytest.raises(DatabaseError) as exc_info:
        async with manager.session():
            raise OperationalError("SELECT 1", {}, Exception("gone"))
    assert exc_info.value.http_status == 500


async def test_session_passes_domain_errors_through(manager):
    with pytest.raises(ResourceNotFoundError):
        async with manager.session():
            raise ResourceNotFoundError("Subscription", "x")


async def test_health_check_succeeds_on_live_engine(manager):
    assert await manager.health_check() is True


async def test_create_tables_registers_subscriptions_table(manager):
    from sqlalchemy import inspect

    async with manager.engine.connect() as conn:
        tables = await conn.run_sync(lambda c: inspect(c).get_table_names())
    assert "subscriptions" in tables
