# Overview: Flask API routes for the debt ledger and payment marking; parses input and returns JSON responses.

# backend/tabstock/routes/debts.py
"""
Debt ledger routes.

SECURITY: All routes require the admin token (@require_admin).

- GET  /api/admin/debts                  closed-month rows, filterable
- GET  /api/admin/debts/summary          per-user totals for one status
- GET  /api/admin/debts/summary-current  unpaid closed months + open month
- GET  /api/admin/debts/user/<user_id>   one user's rows
- POST /api/admin/debts/pay              invoiced -> paid
- POST /api/admin/debts/unpay            paid -> invoiced
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import ValidationError, NotFoundError, ConflictError
from ..models.billing import DEBT_STATUS_INVOICED
from ..services import debt_service, payment_service
from ..validation import parse_debt_filters, parse_status, parse_positive_int, parse_debt_key
from ..decorators import require_admin


debts_bp = Blueprint("debts", __name__, url_prefix="/api/admin/debts")


@debts_bp.get("")
@require_admin
def list_debts_route():
    try:
        filters = parse_debt_filters(request.args)
    except ValidationError as e:
        return jsonify({"error": "Invalid query", "message": str(e)}), 400

    try:
        debts = debt_service.list_debts(**filters)
    except Exception:
        current_app.logger.exception("Failed to list debts")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"debts": debts}), 200


@debts_bp.get("/summary")
@require_admin
def debt_summary_route():
    """Per-user totals; status defaults to invoiced (what is still owed)."""
    try:
        status = parse_status(request.args.get("status") or DEBT_STATUS_INVOICED)
    except ValidationError as e:
        return jsonify({"error": "Invalid query", "message": str(e)}), 400

    try:
        summary = debt_service.summarize_debts(status=status)
    except Exception:
        current_app.logger.exception("Failed to summarize debts")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"status": status, "summary": summary}), 200


@debts_bp.get("/summary-current")
@require_admin
def debt_summary_current_route():
    """
    Live exposure per user.

    Query:
    - include_inactive=1 to also list deactivated users
    """
    include_inactive = request.args.get("include_inactive", "").lower() in ("1", "true", "yes")

    try:
        month_key, summary = debt_service.live_summary(include_inactive=include_inactive)
    except Exception:
        current_app.logger.exception("Failed to build live debt summary")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"month_key": month_key, "summary": summary}), 200


@debts_bp.get("/user/<user_id>")
@require_admin
def user_debts_route(user_id):
    try:
        uid = parse_positive_int(user_id, field="userId", coerce=True)
    except ValidationError:
        return jsonify({"error": "Invalid userId"}), 400

    status = request.args.get("status")
    try:
        if status:
            status = parse_status(status)
    except ValidationError as e:
        return jsonify({"error": "Invalid query", "message": str(e)}), 400

    try:
        user, debts = debt_service.get_user_debts(uid, status=status)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load user debts")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "user": {"id": user.id, "name": user.name, "email": user.email},
        "debts": [d.to_dict() for d in debts],
    }), 200


def _apply_transition(transition, action: str):
    payload = request.get_json(silent=True)
    try:
        month_key, user_id = parse_debt_key(payload)
    except ValidationError as e:
        return jsonify({"error": "Invalid payload", "message": str(e)}), 400

    try:
        transition(month_key, user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to %s debt", action)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200


@debts_bp.post("/pay")
@require_admin
def pay_debt_route():
    """
    Mark a debt as paid.

    Request body:
    {
        "month_key": "2026-01",
        "user_id": 3
    }
    """
    return _apply_transition(payment_service.pay_debt, "pay")


@debts_bp.post("/unpay")
@require_admin
def unpay_debt_route():
    """Cancel a payment. Same body as /pay."""
    return _apply_transition(payment_service.unpay_debt, "unpay")
