# Overview: Flask API routes for restocks; parses input and returns JSON responses.

# backend/tabstock/routes/restock.py
"""
Restock routes.

SECURITY: All routes require the admin token (@require_admin).

Status codes for POST /api/admin/restock:
- 200 applied, body carries move_id
- 400 malformed payload, no valid line, or a correction larger than stock
- 404 unknown product
- 409 stock changed concurrently during apply; nothing applied, retry
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import ValidationError, NotFoundError, InsufficientStockError, StockConflictError
from ..services import restock_service
from ..validation import parse_restock_payload
from ..decorators import require_admin


restock_bp = Blueprint("restock", __name__, url_prefix="/api/admin/restock")


@restock_bp.post("")
@require_admin
def restock_route():
    """
    Apply a restock batch.

    Request body:
    {
        "items": [{"product_id": 1, "qty": 24}, {"product_id": 2, "qty": -1}],
        "comment": "Weekly run"  (optional)
    }

    Rows with product_id <= 0 or qty == 0 are ignored (empty form rows).
    """
    payload = request.get_json(silent=True)

    try:
        lines, comment = parse_restock_payload(payload)
        move_id = restock_service.restock(lines=lines, comment=comment)
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StockConflictError as e:
        return jsonify({"error": str(e), "retryable": True}), 409
    except Exception:
        current_app.logger.exception("Failed to apply restock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True, "move_id": move_id}), 200


@restock_bp.get("/<move_id>")
@require_admin
def get_movement_route(move_id: str):
    try:
        move = restock_service.get_movement(move_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"movement": move.to_dict()}), 200
