# Overview: Inventory store; current stock reads and conditional stock updates.

# backend/tabstock/services/inventory_service.py

from __future__ import annotations

from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update
"""
Inventory invariants (authoritative)

- products.qty is the quantity on hand and is never negative.
- Stock only moves through adjust_quantity(): a single conditional UPDATE
  (`qty = qty + delta WHERE qty + delta >= 0`). The check and the write are
  one statement, so two concurrent corrections cannot both pass on the same
  stale read.
- adjust_quantity() does not commit. Callers own the transaction boundary.
"""


def list_products(*, include_inactive: bool = False) -> list[Product]:
    q = Product.query
    if not include_inactive:
        q = q.filter(Product.is_active.is_(True))
    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def get_quantities(product_ids, *, lock: bool = False) -> dict[int, int]:
    """
    Fresh {product_id: qty} straight from the database.

    Reads columns, not entities, so nothing cached in the session identity
    map can leak in. Unknown ids are simply absent from the result.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    q = db.session.query(Product.id, Product.qty).filter(Product.id.in_(ids))
    if lock:
        q = lock_for_update(q)
    return {pid: int(qty) for pid, qty in q.all()}


def adjust_quantity(product_id: int, delta: int) -> int | None:
    """
    Apply `delta` to one product only if the result stays >= 0.

    Returns the new quantity, or None when the update did not take effect
    (unknown product, or the stock moved under us since it was read).
    """
    updated = (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.qty + delta >= 0)
        .update({Product.qty: Product.qty + delta}, synchronize_session=False)
    )
    if updated != 1:
        return None

    return db.session.query(Product.qty).filter(Product.id == product_id).scalar()
