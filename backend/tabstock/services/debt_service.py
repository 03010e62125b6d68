# Overview: Debt ledger reads; per-user totals from closed months and the live open month.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, select

from ..extensions import db
from ..errors import NotFoundError
from ..models import User, Order, MonthlyDebt
from ..models.billing import DEBT_STATUS_INVOICED, ORDER_STATUS_COMMITTED
from tabstock.time_utils import month_key as compute_month_key
"""
Debt ledger (read side only)

- Closed months live in monthly_debts, one row per (month_key, user_id),
  written by the monthly close and never recomputed here.
- The open month is not in monthly_debts yet: it is the sum of the user's
  committed orders tagged with the current month key.
- The current month key is computed on every call, never cached, in the
  configured BILLING_TIMEZONE.
- Every summary is ordered by total DESC, then user name ASC.
"""


def current_month_key() -> str:
    return compute_month_key(tz_name=current_app.config["BILLING_TIMEZONE"])


def list_debts(*, status: str | None = None, month_key: str | None = None, user_id: int | None = None) -> list[dict]:
    q = (
        db.session.query(MonthlyDebt, User.name, User.email)
        .join(User, User.id == MonthlyDebt.user_id)
    )
    if status:
        q = q.filter(MonthlyDebt.status == status)
    if month_key:
        q = q.filter(MonthlyDebt.month_key == month_key)
    if user_id:
        q = q.filter(MonthlyDebt.user_id == user_id)

    rows = q.order_by(MonthlyDebt.month_key.desc(), User.name.asc(), User.id.asc()).all()

    debts = []
    for debt, user_name, user_email in rows:
        item = debt.to_dict()
        item["user_name"] = user_name
        item["user_email"] = user_email
        debts.append(item)
    return debts


def summarize_debts(*, status: str = DEBT_STATUS_INVOICED) -> list[dict]:
    """
    Per-user totals over monthly_debts rows in `status`.

    Users without a matching row are left out; no rows -> [].
    """
    total = func.sum(MonthlyDebt.amount_cents)
    rows = (
        db.session.query(
            MonthlyDebt.user_id,
            User.name,
            User.email,
            func.count().label("months_count"),
            total.label("total_cents"),
        )
        .join(User, User.id == MonthlyDebt.user_id)
        .filter(MonthlyDebt.status == status)
        .group_by(MonthlyDebt.user_id, User.name, User.email)
        .order_by(total.desc(), User.name.asc(), MonthlyDebt.user_id.asc())
        .all()
    )

    return [
        {
            "user_id": r.user_id,
            "user_name": r.name,
            "user_email": r.email,
            "months_count": int(r.months_count),
            "total_cents": int(r.total_cents or 0),
        }
        for r in rows
    ]


def live_summary(*, include_inactive: bool = False, as_of_month: str | None = None) -> tuple[str, list[dict]]:
    """
    Full exposure per user: unpaid closed months + spend so far this month.

    Returns (month_key, rows). Every active user gets a row, zero totals
    included, so the admin sees the whole tab. include_inactive widens the
    list to departed users who may still owe closed months.
    """
    key = as_of_month or current_month_key()

    unpaid_closed = (
        select(func.coalesce(func.sum(MonthlyDebt.amount_cents), 0))
        .where(
            MonthlyDebt.user_id == User.id,
            MonthlyDebt.status == DEBT_STATUS_INVOICED,
        )
        .correlate(User)
        .scalar_subquery()
    )
    open_month = (
        select(func.coalesce(func.sum(Order.total_cents), 0))
        .where(
            Order.user_id == User.id,
            Order.status == ORDER_STATUS_COMMITTED,
            Order.month_key == key,
        )
        .correlate(User)
        .scalar_subquery()
    )

    q = db.session.query(
        User.id,
        User.name,
        User.email,
        unpaid_closed.label("unpaid_closed_cents"),
        open_month.label("open_month_cents"),
    )
    if not include_inactive:
        q = q.filter(User.is_active.is_(True))

    summary = []
    for r in q.all():
        unpaid_closed_cents = int(r.unpaid_closed_cents or 0)
        open_month_cents = int(r.open_month_cents or 0)
        summary.append({
            "user_id": r.id,
            "user_name": r.name,
            "user_email": r.email,
            "unpaid_closed_cents": unpaid_closed_cents,
            "open_month_cents": open_month_cents,
            "total_cents": unpaid_closed_cents + open_month_cents,
        })

    # Sorted here so the order is on the exact total returned to the caller
    summary.sort(key=lambda row: (-row["total_cents"], row["user_name"], row["user_id"]))
    return key, summary


def get_user_debts(user_id: int, *, status: str | None = None) -> tuple[User, list[MonthlyDebt]]:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    q = MonthlyDebt.query.filter(MonthlyDebt.user_id == user_id)
    if status:
        q = q.filter(MonthlyDebt.status == status)

    return user, q.order_by(MonthlyDebt.month_key.desc()).all()
