# Overview: Restock processor; validates and applies a batch of stock deltas as one movement.

"""
Restock Processing Service

A restock batch is a list of (product_id, signed qty) lines plus an
optional comment. Positive lines are deliveries, negative lines are
corrections (breakage, miscounts).

PROTOCOL (order matters):
1. Empty batch after filtering -> ValidationError.
2. Re-read stock for every referenced product from the database. Whatever
   the admin screen displayed is never trusted on the write path.
3. For each product, the total removed by its negative lines must not
   exceed its current stock -> InsufficientStockError, nothing applied.
4. Apply every line with a conditional UPDATE and write exactly one
   RestockMovement, all in one transaction. If any conditional UPDATE does
   not take effect (a concurrent writer got there first), the whole batch
   is rolled back -> StockConflictError (safe to retry).
5. Return the movement id.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..errors import ValidationError, NotFoundError, InsufficientStockError, StockConflictError
from ..models import RestockMovement, RestockMovementLine
from ..validation import RestockLine, normalize_comment
from .concurrency import run_with_retry
from .inventory_service import get_quantities, adjust_quantity

logger = logging.getLogger(__name__)


def _new_move_id() -> str:
    return uuid.uuid4().hex


def check_corrections(lines: Iterable[RestockLine], stock: dict[int, int]) -> None:
    """
    Raise InsufficientStockError for the first product whose corrections
    remove more than is on hand.

    Removals are summed per product: two -3 lines on a stock of 5 fail
    together even though each would pass alone.
    """
    removals: dict[int, int] = defaultdict(int)
    order: list[int] = []
    for line in lines:
        if line.qty_delta < 0:
            if line.product_id not in removals:
                order.append(line.product_id)
            removals[line.product_id] += -line.qty_delta

    for product_id in order:
        current = stock[product_id]
        if removals[product_id] > current:
            raise InsufficientStockError(product_id, current, removals[product_id])


def restock(*, lines: list[RestockLine], comment: str | None = None) -> str:
    """
    Apply a restock batch atomically.

    Args:
        lines: already-filtered lines (see validation.normalize_restock_lines)
        comment: optional free text stored on the movement

    Returns:
        The new movement id.

    Raises:
        ValidationError: no lines
        NotFoundError: a referenced product does not exist
        InsufficientStockError: a correction exceeds current stock (do not retry as-is)
        StockConflictError: lost a concurrent update during apply (retry)
    """
    if not lines:
        raise ValidationError("No valid restock lines")

    comment = normalize_comment(comment)

    def _op():
        product_ids = [line.product_id for line in lines]
        stock = get_quantities(product_ids, lock=True)

        missing = [pid for pid in dict.fromkeys(product_ids) if pid not in stock]
        if missing:
            raise NotFoundError(f"Product {missing[0]} not found")

        check_corrections(lines, stock)

        move = RestockMovement(id=_new_move_id(), comment=comment)
        db.session.add(move)
        db.session.flush()

        for position, line in enumerate(lines):
            qty_after = adjust_quantity(line.product_id, line.qty_delta)
            if qty_after is None:
                logger.warning(
                    "Restock %s lost a concurrent update on product %s (delta %+d)",
                    move.id, line.product_id, line.qty_delta,
                )
                raise StockConflictError(
                    f"Stock for product {line.product_id} changed during restock, retry"
                )
            db.session.add(RestockMovementLine(
                move_id=move.id,
                position=position,
                product_id=line.product_id,
                qty_delta=line.qty_delta,
                qty_after=qty_after,
            ))

        db.session.commit()
        return move.id

    attempts = current_app.config.get("RESTOCK_RETRY_ATTEMPTS", 3)
    try:
        move_id = run_with_retry(_op, attempts=attempts)
    except InsufficientStockError as e:
        logger.info("Restock rejected: %s", e)
        raise

    logger.info("Restock %s applied (%d lines)", move_id, len(lines))
    return move_id


def get_movement(move_id: str) -> RestockMovement:
    move = db.session.get(RestockMovement, move_id)
    if move is None:
        raise NotFoundError("Movement not found")
    return move


def list_movements(*, limit: int = 50) -> list[RestockMovement]:
    return (
        RestockMovement.query
        .order_by(RestockMovement.created_at.desc(), RestockMovement.id.desc())
        .limit(limit)
        .all()
    )
