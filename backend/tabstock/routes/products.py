# Overview: Flask API routes for product stock listing.

from flask import Blueprint, request, jsonify

from ..services import inventory_service
from ..decorators import require_admin


products_bp = Blueprint("products", __name__, url_prefix="/api/admin/products")


@products_bp.get("")
@require_admin
def list_products_route():
    """Products with current stock, for the restock screen."""
    include_inactive = request.args.get("include_inactive", "").lower() in ("1", "true", "yes")
    products = inventory_service.list_products(include_inactive=include_inactive)
    return jsonify({"products": [p.to_dict() for p in products]}), 200
