# backend/kouriten/routes/inventory.py
"""
Inventory routes.

Reads are public (the shop's stock page uses GET /api/inventory);
mutations require a staff session. stock_quantity in a PUT body is an
absolute target that is applied as a logged adjustment.
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import inventory_service
from ..services.stock_service import list_movements


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
def list_inventory_route():
    return jsonify(inventory_service.list_inventory())


@inventory_bp.get("/status")
def inventory_status_route():
    """Every item with qty_ordered, qty_allocated and active_po_count."""
    return jsonify(inventory_service.inventory_status())


@inventory_bp.post("/add")
@require_auth
def add_inventory_route():
    result = inventory_service.add_inventory(request.get_json(silent=True) or {})
    return jsonify({**result, "message": "Item added"}), 201


@inventory_bp.put("/<int:item_id>")
@require_auth
def update_inventory_route(item_id: int):
    item = inventory_service.update_inventory(item_id, request.get_json(silent=True) or {})
    return jsonify({"message": "Item updated", "item": item}), 200


@inventory_bp.delete("/<int:item_id>")
@require_auth
def delete_inventory_route(item_id: int):
    inventory_service.delete_inventory(item_id)
    return jsonify({"message": "Item deleted"}), 200


@inventory_bp.get("/<int:item_id>/movements")
def list_movements_route(item_id: int):
    limit = request.args.get("limit", type=int)
    return jsonify(list_movements(item_id, limit))
