# Overview: Transaction scoping and retry helpers shared by the service layer.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work(*, immediate: bool = True):
    """
    One atomic unit of database work.

    Commits when the block exits normally; rolls back on every other exit
    path (exceptions, GeneratorExit from an abandoned request, KeyboardInterrupt)
    and re-raises. Nothing inside the block is retried.

    On SQLite, immediate=True takes the write lock up front (BEGIN IMMEDIATE)
    so concurrent writers queue on the busy timeout instead of failing when
    upgrading a read lock.
    """
    session = db.session
    try:
        if immediate and db.engine.dialect.name == "sqlite":
            session.execute(text("BEGIN IMMEDIATE"))
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Only for idempotent catalog writes;
    sale commits are never retried here.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
