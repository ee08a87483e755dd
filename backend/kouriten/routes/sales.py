# Overview: Flask API routes for counter sales and preorders.

"""
Sales Routes

POST /api/sales body:
{
    "customer_id": 4,
    "order_type": "In-Stock" | "Preorder",
    "payment_method": "Cash",
    "items": [{"id": 3, "qty": 2, "price": 5.5}],
    "deposit_amount": 10          // optional
}

Any client-side total is ignored; the total is computed from the lines.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import sales_service
from ..validation import date_query_arg, parse_int, require_fields, require_list


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    data = request.get_json(silent=True) or {}
    require_fields(data, "customer_id", "order_type")
    result = sales_service.create_order(
        customer_id=parse_int(data["customer_id"], "customer_id"),
        order_type=data["order_type"],
        items=require_list(data, "items"),
        payment_method=data.get("payment_method"),
        deposit_amount=data.get("deposit_amount"),
    )
    return jsonify({**result, "message": "Order created"}), 201


@sales_bp.get("/history")
def order_history_route():
    return jsonify(sales_service.order_history(
        search=request.args.get("search"),
        status=request.args.get("status"),
        order_type=request.args.get("order_type"),
        start_date=date_query_arg(request.args, "startDate", "start_date"),
        end_date=date_query_arg(request.args, "endDate", "end_date"),
        limit=request.args.get("limit", type=int),
    ))


@sales_bp.get("/preorders")
def open_preorders_route():
    return jsonify(sales_service.open_preorders())


@sales_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    return jsonify(sales_service.get_order(order_id))


@sales_bp.put("/<int:order_id>/payment")
@require_auth
def record_payment_route(order_id: int):
    """Request body: {"amount": 20}"""
    data = request.get_json(silent=True) or {}
    return jsonify(sales_service.record_order_payment(order_id, data.get("amount"))), 200
