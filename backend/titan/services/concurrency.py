# Overview: Transaction helpers for balance mutations; one unit of work per operation.

from __future__ import annotations

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Balance writes additionally go through conditional UPDATEs, so
    correctness does not depend on the lock.
    """
    return query.with_for_update()


def run_atomic(func):
    """
    Run func as one unit of work: func commits on success, and any failure
    (business-rule or storage) rolls the session back and propagates.

    Nothing is retried. A commit that fails after reaching the database may
    still have been applied, so re-running func could repeat a movement.
    """
    try:
        return func()
    except Exception:
        db.session.rollback()
        raise
