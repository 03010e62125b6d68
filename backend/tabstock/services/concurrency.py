# Overview: Transaction helpers shared by the write paths (restock, payments).

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The conditional UPDATEs in inventory_service are what actually close the
    race on SQLite.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute `func` as one DB transaction.

    Any exception rolls the session back before propagating, so a failed
    call never leaves half-applied rows in the session.

    Retries on OperationalError (deadlocks, "database is locked") only.
    Domain errors are raised straight away: the caller decides about retries.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Transient database error, retrying (attempt %d/%d)", attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
