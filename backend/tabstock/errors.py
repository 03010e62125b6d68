# Overview: Domain error kinds shared by services and routes.

from __future__ import annotations


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: referenced user, debt or product does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., debt already paid)."""


class StockConflictError(ConflictError):
    """
    A conditional stock update lost against a concurrent writer.

    Nothing was applied; the same request is safe to retry.
    """

    retryable = True


class InsufficientStockError(ValidationError):
    """
    A correction asks to remove more than is on hand.

    Rejected at validation time, so retrying the same request will fail again.
    """

    def __init__(self, product_id: int, current_qty: int, requested_removal: int):
        self.product_id = product_id
        self.current_qty = current_qty
        self.requested_removal = requested_removal
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"{current_qty} on hand, {requested_removal} requested for removal"
        )

    @property
    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "current_qty": self.current_qty,
            "requested_removal": self.requested_removal,
        }
