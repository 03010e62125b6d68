from __future__ import annotations

from ..extensions import db
from tabstock.time_utils import to_utc_z


class Product(db.Model):
    """
    Shared stock item.

    qty is the quantity on hand. It is only ever changed through a
    conditional UPDATE (see services/inventory_service.py); the CHECK
    constraint is the last line against a negative stock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("qty >= 0", name="ck_products_qty_non_negative"),
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} qty={self.qty}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "is_active": self.is_active,
            "updated_at": to_utc_z(self.updated_at),
        }


class RestockMovement(db.Model):
    """
    One accepted restock batch.

    Append-only: written once, in the same DB transaction as the stock
    updates it describes, never updated or deleted.
    """
    __tablename__ = "restock_movements"

    # uuid4 hex, generated by the restock service
    id = db.Column(db.String(32), primary_key=True)
    comment = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "RestockMovementLine",
        backref="movement",
        order_by="RestockMovementLine.position",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<RestockMovement id={self.id!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "comment": self.comment,
            "created_at": to_utc_z(self.created_at),
            "lines": [line.to_dict() for line in self.lines],
        }


class RestockMovementLine(db.Model):
    __tablename__ = "restock_movement_lines"
    __table_args__ = (
        db.UniqueConstraint("move_id", "position", name="uq_restock_lines_move_position"),
        db.CheckConstraint("qty_delta <> 0", name="ck_restock_lines_delta_non_zero"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    move_id = db.Column(db.String(32), db.ForeignKey("restock_movements.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Signed: positive = restock, negative = correction
    qty_delta = db.Column(db.Integer, nullable=False)
    qty_after = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "product_id": self.product_id,
            "qty_delta": self.qty_delta,
            "qty_after": self.qty_after,
        }
