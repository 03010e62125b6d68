# Overview: Payment state machine for monthly debts (invoiced <-> paid).

"""
Debt Payment Service

STATE MACHINE (per (month_key, user_id)):
    invoiced --pay--> paid
    paid --unpay--> invoiced

- No other transitions, no terminal state.
- A transition from the wrong state is a ConflictError and changes nothing:
  paying twice is reported, never silently accepted.
- amount_cents is never touched.
- paid_at is set on pay and cleared on unpay.

Each transition is a single conditional UPDATE keyed on the expected
current status, so two admins clicking at once cannot both succeed.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..errors import NotFoundError, ConflictError
from ..models import MonthlyDebt
from ..models.billing import DEBT_STATUS_INVOICED, DEBT_STATUS_PAID
from tabstock.time_utils import utcnow
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


def _transition(month_key: str, user_id: int, *, from_status: str, to_status: str, paid_at, conflict_message: str) -> MonthlyDebt:
    def _op():
        updated = (
            db.session.query(MonthlyDebt)
            .filter(
                MonthlyDebt.month_key == month_key,
                MonthlyDebt.user_id == user_id,
                MonthlyDebt.status == from_status,
            )
            .update(
                {MonthlyDebt.status: to_status, MonthlyDebt.paid_at: paid_at},
                synchronize_session=False,
            )
        )
        if updated != 1:
            exists = db.session.query(MonthlyDebt.status).filter_by(
                month_key=month_key, user_id=user_id,
            ).first()
            if exists is None:
                raise NotFoundError("Debt not found")
            raise ConflictError(conflict_message)

        db.session.commit()
        return db.session.get(MonthlyDebt, (month_key, user_id), populate_existing=True)

    return run_with_retry(_op)


def pay_debt(month_key: str, user_id: int) -> MonthlyDebt:
    """
    Mark a closed month as paid.

    Raises:
        NotFoundError: no debt row for (month_key, user_id)
        ConflictError: already paid
    """
    debt = _transition(
        month_key,
        user_id,
        from_status=DEBT_STATUS_INVOICED,
        to_status=DEBT_STATUS_PAID,
        paid_at=utcnow(),
        conflict_message="Already paid",
    )
    logger.info("Debt %s for user %s marked paid (%d cents)", month_key, user_id, debt.amount_cents)
    return debt


def unpay_debt(month_key: str, user_id: int) -> MonthlyDebt:
    """
    Undo a payment: back to invoiced, paid_at cleared.

    Raises:
        NotFoundError: no debt row for (month_key, user_id)
        ConflictError: already unpaid
    """
    debt = _transition(
        month_key,
        user_id,
        from_status=DEBT_STATUS_PAID,
        to_status=DEBT_STATUS_INVOICED,
        paid_at=None,
        conflict_message="Already unpaid",
    )
    logger.info("Debt %s for user %s marked unpaid", month_key, user_id)
    return debt
