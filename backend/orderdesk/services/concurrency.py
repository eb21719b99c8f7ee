# Overview: Service-layer helpers for write serialization and request deadlines.

from __future__ import annotations

import time

from sqlalchemy import text, update
from sqlalchemy.exc import OperationalError

from ..extensions import db
from ..models import AllocationLock
from ..validation import DeadlineExceededError

ALLOCATION_LOCK_NAME = "payments"

# pysqlite default (timeout=5.0)
SQLITE_BUSY_TIMEOUT_MS = 5000


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def ensure_allocation_lock(name: str = ALLOCATION_LOCK_NAME) -> None:
    """Create the lock row if it is missing (idempotent)."""
    if db.session.get(AllocationLock, name) is None:
        db.session.add(AllocationLock(name=name, version=0))
        db.session.commit()


def _bound_lock_wait(deadline: Deadline | None) -> bool:
    """
    Cap the driver's lock wait at the deadline's remaining time.

    Returns True when a cap was applied. SQLite's busy_timeout is a
    connection setting and must be restored afterwards; PostgreSQL's
    SET LOCAL ends with the transaction.
    """
    remaining = deadline.remaining() if deadline is not None else None
    if remaining is None:
        return False
    wait_ms = max(1, int(remaining * 1000))
    dialect = db.session.get_bind().dialect.name
    if dialect == "sqlite":
        db.session.execute(text(f"PRAGMA busy_timeout = {wait_ms}"))
    elif dialect == "postgresql":
        db.session.execute(text(f"SET LOCAL lock_timeout = {wait_ms}"))
    else:
        return False
    return True


def acquire_allocation_lock(name: str = ALLOCATION_LOCK_NAME, deadline: Deadline | None = None) -> int:
    """
    Take the allocation write lock for the current transaction.

    Must be the first statement of the transaction: the UPDATE takes the
    database write lock on SQLite (a row lock elsewhere) and holds it until
    commit or rollback, so concurrent payment transactions queue here
    instead of reading the same outstanding balances.

    With a deadline, the wait for a busy lock gives up when the deadline
    passes and raises DeadlineExceededError.

    Returns the new lock version.
    """
    stmt = (
        update(AllocationLock)
        .where(AllocationLock.name == name)
        .values(version=AllocationLock.version + 1)
        .execution_options(synchronize_session=False)
    )
    capped = _bound_lock_wait(deadline)
    try:
        result = db.session.execute(stmt)
    except OperationalError as e:
        if capped:
            raise DeadlineExceededError("deadline exceeded waiting for allocation lock") from e
        raise
    finally:
        if capped and db.session.get_bind().dialect.name == "sqlite":
            db.session.execute(text(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}"))

    if not result.rowcount:
        db.session.add(AllocationLock(name=name, version=1))
        db.session.flush()
        return 1
    return lock_for_update(db.session.query(AllocationLock.version).filter_by(name=name)).scalar()


class Deadline:
    """
    Monotonic deadline checked before each database round-trip.

    timeout=None means no deadline.
    """

    def __init__(self, timeout: float | None):
        self.expires_at = time.monotonic() + timeout if timeout else None

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def check(self, step: str) -> None:
        if self.expires_at is not None and time.monotonic() >= self.expires_at:
            raise DeadlineExceededError(f"deadline exceeded before {step}")
