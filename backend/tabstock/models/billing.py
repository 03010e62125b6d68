from __future__ import annotations

from ..extensions import db
from tabstock.time_utils import to_utc_z


ORDER_STATUS_COMMITTED = "committed"

DEBT_STATUS_INVOICED = "invoiced"
DEBT_STATUS_PAID = "paid"
DEBT_STATUSES = (DEBT_STATUS_INVOICED, DEBT_STATUS_PAID)


class Order(db.Model):
    """
    Purchase captured by the checkout side.

    Only `committed` orders count towards the open month. This service
    never writes orders.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_month_status", "user_id", "month_key", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    month_key = db.Column(db.String(7), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_COMMITTED)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("orders", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "month_key": self.month_key,
            "total_cents": self.total_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class MonthlyDebt(db.Model):
    """
    Closed-month bill for one user.

    Written once as `invoiced` by the monthly close. The admin can only flip
    status between `invoiced` and `paid`; amount_cents never changes.
    paid_at is set iff status == 'paid'.
    """
    __tablename__ = "monthly_debts"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('invoiced', 'paid')",
            name="ck_monthly_debts_status",
        ),
        db.CheckConstraint(
            "(status = 'paid' AND paid_at IS NOT NULL) OR (status = 'invoiced' AND paid_at IS NULL)",
            name="ck_monthly_debts_paid_at",
        ),
        db.Index("ix_monthly_debts_user_status", "user_id", "status"),
    )

    month_key = db.Column(db.String(7), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=DEBT_STATUS_INVOICED)

    generated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User", backref=db.backref("debts", lazy=True))

    def __repr__(self) -> str:
        return f"<MonthlyDebt {self.month_key} user_id={self.user_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "month_key": self.month_key,
            "user_id": self.user_id,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "generated_at": to_utc_z(self.generated_at),
            "paid_at": to_utc_z(self.paid_at),
        }
