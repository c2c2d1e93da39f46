"""
Database configuration, session management and transaction boundaries.

The engine and session factory are owned by a Database object created at
application startup (see core.lifespan) and kept on app.state; request
handlers get a session through the get_db dependency.

All mutating domain operations go through run_in_transaction(), which:
- bounds every statement and lock wait (PostgreSQL SET LOCAL timeouts),
- commits on success and rolls back on any failure,
- retries lock-wait, deadlock and serialization failures a few times,
- turns any other database failure into a generic DatabaseError.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from fastapi import Request
from sqlalchemy import Engine, create_engine, make_url, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from nutribite_shared.config.logging import get_logger
from nutribite_shared.config.settings import Settings, settings as default_settings
from nutribite_shared.utils.exceptions import AppException, DatabaseError

logger = get_logger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})
RETRYABLE_MESSAGES = (
    "deadlock detected",
    "could not serialize access",
    "lock timeout",
    "database is locked",
)


class Database:
    """
    Owns the connection pool and the session factory.

    Usage:
        database = Database.from_settings(settings)
        with database.session() as db:
            ...
        database.dispose()
    """

    def __init__(self, engine: Engine, app_settings: Settings | None = None):
        self.engine = engine
        self.settings = app_settings or default_settings
        self.session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, app_settings: Settings | None = None) -> Database:
        """Build a pooled engine from settings."""
        app_settings = app_settings or default_settings
        connect_args = {}
        if make_url(app_settings.database_url).get_backend_name() == "postgresql":
            connect_args["connect_timeout"] = app_settings.db_connect_timeout
        engine = create_engine(
            app_settings.database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
            pool_timeout=app_settings.db_pool_timeout,
            pool_recycle=app_settings.db_pool_recycle,
            connect_args=connect_args,
            echo=False,
        )
        return cls(engine, app_settings)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...

    The session is closed after the request completes.
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context(database: Database) -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI (CLI, scripts).

    Usage:
        with get_db_context(database) as db:
            StockService(db).set_stock(1, 5)
    """
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def _sqlstate(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None)
    return (
        getattr(orig, "sqlstate", None)
        or getattr(orig, "pgcode", None)
        or getattr(exc, "sqlstate", None)
    )


def is_retryable(exc: BaseException) -> bool:
    """True for lock-wait, deadlock and serialization failures."""
    if not isinstance(exc, DBAPIError):
        return False
    code = _sqlstate(exc)
    if code in RETRYABLE_SQLSTATES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in RETRYABLE_MESSAGES)


def apply_transaction_timeouts(db: Session, app_settings: Settings | None = None) -> None:
    """Bound statement and lock waits for the current transaction (PostgreSQL only)."""
    app_settings = app_settings or default_settings
    if db.get_bind().dialect.name != "postgresql":
        return
    # SET LOCAL takes no bind parameters; values are ints from settings
    db.execute(text(f"SET LOCAL statement_timeout = {int(app_settings.db_statement_timeout_ms)}"))
    db.execute(text(f"SET LOCAL lock_timeout = {int(app_settings.db_lock_timeout_ms)}"))


def run_in_transaction(
    db: Session,
    fn: Callable[[Session], T],
    *,
    operation: str,
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
    app_settings: Settings | None = None,
) -> T:
    """
    Run fn(db) as one transaction and commit it.

    fn must re-read everything it depends on: a retried attempt starts from a
    rolled-back session.

    Raises:
        AppException: Domain errors raised by fn, after rollback.
        DatabaseError: Database failure that is not retryable or persisted.
    """
    app_settings = app_settings or default_settings
    attempts = max_attempts or app_settings.db_tx_max_attempts
    backoff = (
        app_settings.db_tx_retry_backoff_seconds if backoff_seconds is None else backoff_seconds
    )

    attempt = 0
    while True:
        attempt += 1
        try:
            apply_transaction_timeouts(db, app_settings)
            result = fn(db)
            db.commit()
            return result
        except AppException:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            if attempt < attempts and is_retryable(exc):
                logger.warning(
                    "Transaction conflict, retrying",
                    operation=operation,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=type(exc).__name__,
                )
                time.sleep(backoff * attempt)
                continue
            logger.error(
                "Transaction failed",
                operation=operation,
                attempt=attempt,
                error=str(exc),
            )
            raise DatabaseError(operation) from exc
        except Exception:
            db.rollback()
            raise
