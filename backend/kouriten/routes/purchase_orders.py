# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

"""
Purchase Order Routes

Create and receive are all-or-nothing; a 4xx/5xx response means nothing
was written.

Query parameters for GET /api/purchase-orders:
- search: po_number, supplier name or invoice number
- status: Ordered | Invoiced | Received | Cancelled
- startDate / endDate: inclusive YYYY-MM-DD bounds on order_date (start_date / end_date also accepted)
- limit: default 100, clamped to 1..500
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import purchasing_service
from ..validation import ValidationError, date_query_arg, parse_int, require_fields, require_list


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


@purchase_orders_bp.post("")
@require_auth
def create_purchase_order_route():
    """
    Request body:
    {
        "supplier_id": 1,                      // required
        "po_number": "PO-20240101-0001",       // optional, generated when absent
        "items": [{"inventory_id": 3, "qty": 12, "cost": 85.5}],
        "paid_amount": 0,                      // optional
        "notes": "..."                         // optional
    }
    """
    data = request.get_json(silent=True) or {}
    require_fields(data, "supplier_id")
    result = purchasing_service.create_purchase_order(
        supplier_id=parse_int(data["supplier_id"], "supplier_id"),
        items=require_list(data, "items"),
        po_number=data.get("po_number"),
        paid_amount=data.get("paid_amount"),
        notes=data.get("notes"),
    )
    return jsonify({**result, "message": "Purchase order created"}), 201


@purchase_orders_bp.get("")
def list_purchase_orders_route():
    return jsonify(purchasing_service.list_purchase_orders(
        search=request.args.get("search"),
        status=request.args.get("status"),
        start_date=date_query_arg(request.args, "startDate", "start_date"),
        end_date=date_query_arg(request.args, "endDate", "end_date"),
        limit=request.args.get("limit", type=int),
    ))


@purchase_orders_bp.get("/<int:po_id>")
def get_purchase_order_route(po_id: int):
    return jsonify(purchasing_service.get_purchase_order(po_id))


@purchase_orders_bp.put("/<int:po_id>/receive")
@require_auth
def receive_purchase_order_route(po_id: int):
    """
    Request body:
    {"items": [{"po_item_id": 7, "inventory_id": 3, "qty_received": 6}]}
    """
    data = request.get_json(silent=True) or {}
    result = purchasing_service.receive_purchase_order(po_id, require_list(data, "items"))
    return jsonify({**result, "message": "Stock received"}), 200


@purchase_orders_bp.put("/<int:po_id>/payment")
@require_auth
def record_po_payment_route(po_id: int):
    """
    Request body (all optional):
    {"amount_paid": 40, "final_total_cost": 100, "invoice_no": "INV-9", "payment_date": "2024-05-01"}
    """
    data = request.get_json(silent=True) or {}
    result = purchasing_service.record_po_payment(
        po_id,
        amount_paid=data.get("amount_paid"),
        final_total_cost=data.get("final_total_cost"),
        invoice_no=data.get("invoice_no"),
        payment_date=data.get("payment_date"),
    )
    return jsonify(result), 200


@purchase_orders_bp.put("/<int:po_id>/status")
@require_auth
def update_status_route(po_id: int):
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        raise ValidationError("status is required")
    return jsonify(purchasing_service.update_purchase_order_status(po_id, data["status"])), 200


@purchase_orders_bp.put("/<int:po_id>/allocations")
@require_auth
def set_allocations_route(po_id: int):
    """Request body: {"items": [{"po_item_id": 7, "allocated_qty": 4}]}"""
    data = request.get_json(silent=True) or {}
    return jsonify(purchasing_service.set_allocations(po_id, require_list(data, "items"))), 200
