from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from .errors import ValidationError
from .models.billing import DEBT_STATUSES


MONTH_KEY_RE = re.compile(r"^\d{4}-\d{2}$", re.ASCII)

# Largest value an INTEGER column holds (64-bit signed)
MAX_DB_INT = 2**63 - 1

# Restock comments are free text typed by the admin
MAX_COMMENT_LENGTH = 500


@dataclass(frozen=True)
class PayloadPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to send (security boundary)
    - required: fields that must be present
    """
    writable_fields: set[str]
    required: set[str] | None = None


def check_payload(payload: Any, policy: PayloadPolicy) -> dict:
    """Reject non-objects, unknown fields and missing required fields."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    missing = sorted(f for f in (policy.required or set()) if f not in payload)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    return payload


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are never quantities
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_status(value: Any, *, field: str = "status") -> str:
    if value not in DEBT_STATUSES:
        raise ValidationError(f"{field} must be one of: {', '.join(DEBT_STATUSES)}")
    return value


def parse_month_key(value: Any, *, field: str = "month_key") -> str:
    if not isinstance(value, str) or not MONTH_KEY_RE.match(value):
        raise ValidationError(f"{field} must match YYYY-MM")
    return value


def parse_positive_int(value: Any, *, field: str, coerce: bool = False) -> int:
    """
    Strict positive integer.

    coerce=True accepts plain digit strings (query strings, URL parts);
    JSON bodies must carry a real integer.
    """
    if coerce and isinstance(value, str):
        stripped = value.strip()
        if not (stripped.isascii() and stripped.isdigit()):
            raise ValidationError(f"{field} must be a positive integer")
        value = int(stripped)

    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    if value > MAX_DB_INT:
        raise ValidationError(f"{field} is too large")
    return value


def parse_debt_filters(args) -> dict:
    """Optional status / month_key / user_id filters from a query string."""
    filters: dict = {}
    status = args.get("status")
    if status:
        filters["status"] = parse_status(status)
    month = args.get("month_key")
    if month:
        filters["month_key"] = parse_month_key(month)
    user_id = args.get("user_id")
    if user_id:
        filters["user_id"] = parse_positive_int(user_id, field="user_id", coerce=True)
    return filters


DEBT_KEY_POLICY = PayloadPolicy(
    writable_fields={"month_key", "user_id"},
    required={"month_key", "user_id"},
)


def parse_debt_key(payload: Any) -> tuple[str, int]:
    """Body of /debts/pay and /debts/unpay: exactly {month_key, user_id}."""
    data = check_payload(payload, DEBT_KEY_POLICY)
    return (
        parse_month_key(data["month_key"]),
        parse_positive_int(data["user_id"], field="user_id"),
    )


@dataclass(frozen=True)
class RestockLine:
    product_id: int
    qty_delta: int


RESTOCK_POLICY = PayloadPolicy(
    writable_fields={"items", "comment"},
    required={"items"},
)


def normalize_restock_lines(items: Any) -> list[RestockLine]:
    """
    Turn raw restock rows into RestockLine objects, in submission order.

    Incomplete rows are dropped, not rejected, the same way the admin form
    ignores rows left on "choose a product":
    - product_id missing or <= 0
    - qty missing, zero, NaN or infinite

    Rows of the wrong shape (not an object, text where a number belongs,
    fractional quantities, values past a 64-bit column) are a malformed
    request and raise ValidationError.
    """
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    lines: list[RestockLine] = []
    for idx, row in enumerate(items):
        if not isinstance(row, dict):
            raise ValidationError(f"items[{idx}] must be an object")

        product_id = row.get("product_id")
        qty = row.get("qty")

        if product_id is None or qty is None:
            continue
        if not _is_number(product_id) or not _is_number(qty):
            raise ValidationError(f"items[{idx}]: product_id and qty must be numbers")

        if isinstance(product_id, float):
            if not math.isfinite(product_id) or not product_id.is_integer():
                continue
            product_id = int(product_id)
        if product_id <= 0:
            continue

        if isinstance(qty, float):
            if not math.isfinite(qty) or qty == 0:
                continue
            if not qty.is_integer():
                raise ValidationError(f"items[{idx}]: qty must be a whole number")
            qty = int(qty)
        if qty == 0:
            continue
        if product_id > MAX_DB_INT or abs(qty) > MAX_DB_INT:
            raise ValidationError(f"items[{idx}]: product_id or qty is too large")

        lines.append(RestockLine(product_id=product_id, qty_delta=qty))

    return lines


def normalize_comment(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("comment must be a string")
    comment = value.strip()
    if not comment:
        return None
    if len(comment) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"comment exceeds max length {MAX_COMMENT_LENGTH}")
    return comment


def parse_restock_payload(payload: Any) -> tuple[list[RestockLine], str | None]:
    data = check_payload(payload, RESTOCK_POLICY)
    return normalize_restock_lines(data["items"]), normalize_comment(data.get("comment"))
