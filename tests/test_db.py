"""
Tests for the transaction boundary: commit, rollback and conflict retries.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from nutribite_shared.infrastructure.db import is_retryable, run_in_transaction
from nutribite_shared.utils.exceptions import DatabaseError, ValidationError
from nutribite_api.models import Category
from tests.conftest import next_id


class FakeDriverError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        self.sqlstate = sqlstate


def deadlock():
    return OperationalError("UPDATE products", {}, FakeDriverError("deadlock", "40P01"))


class TestIsRetryable:
    @pytest.mark.parametrize("code", ["40001", "40P01", "55P03"])
    def test_retryable_sqlstates(self, code):
        """Should retry serialization, deadlock and lock-timeout failures."""
        exc = OperationalError("stmt", {}, FakeDriverError("conflict", code))
        assert is_retryable(exc)

    def test_sqlite_lock_message(self):
        """Should retry SQLite's "database is locked"."""
        exc = OperationalError("stmt", {}, FakeDriverError("database is locked"))
        assert is_retryable(exc)

    def test_unique_violation_not_retryable(self):
        """Should not retry a unique violation."""
        exc = IntegrityError("stmt", {}, FakeDriverError("duplicate key", "23505"))
        assert not is_retryable(exc)

    def test_plain_exception_not_retryable(self):
        """Should not retry errors that did not come from the driver."""
        assert not is_retryable(RuntimeError("deadlock detected"))


class TestRunInTransaction:
    def test_commits_result(self, db_session):
        """Should commit and return the callback's result."""
        category_id = next_id()

        def create(db):
            db.add(Category(id=category_id, name="Soups"))
            return "done"

        result = run_in_transaction(db_session, create, operation="create category")

        assert result == "done"
        db_session.expire_all()
        assert db_session.get(Category, category_id).name == "Soups"

    def test_retries_deadlock_then_succeeds(self, db_session):
        """Should retry after a deadlock until the callback succeeds."""
        calls = []

        def flaky(db):
            calls.append(1)
            if len(calls) < 3:
                raise deadlock()
            return len(calls)

        result = run_in_transaction(
            db_session, flaky, operation="flaky", max_attempts=3, backoff_seconds=0
        )

        assert result == 3

    def test_exhausted_retries_raise_database_error(self, db_session):
        """Should raise DatabaseError once retries run out."""
        calls = []

        def always_deadlocks(db):
            calls.append(1)
            raise deadlock()

        with pytest.raises(DatabaseError) as exc_info:
            run_in_transaction(
                db_session, always_deadlocks, operation="stock", max_attempts=2, backoff_seconds=0
            )

        assert len(calls) == 2
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Database error during stock. Please try again."

    def test_non_retryable_error_is_not_retried(self, db_session):
        """Should call the callback once for a non-retryable error."""
        calls = []

        def broken(db):
            calls.append(1)
            raise IntegrityError("INSERT", {}, FakeDriverError("duplicate key", "23505"))

        with pytest.raises(DatabaseError):
            run_in_transaction(db_session, broken, operation="insert", backoff_seconds=0)

        assert len(calls) == 1

    def test_domain_error_rolls_back(self, db_session):
        """Should roll back and re-raise application errors."""
        category_id = next_id()

        def create_then_reject(db):
            db.add(Category(id=category_id, name="Desserts"))
            db.flush()
            raise ValidationError("rejected")

        with pytest.raises(ValidationError):
            run_in_transaction(db_session, create_then_reject, operation="reject")

        assert db_session.get(Category, category_id) is None
