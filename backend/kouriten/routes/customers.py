# Overview: Flask API routes for customers.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import customer_service


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers_route():
    return jsonify(customer_service.list_customers(request.args.get("search")))


@customers_bp.get("/search")
def search_customers_route():
    """Type-ahead lookup: ?q=<name|email|mobile|player id>&limit=10"""
    return jsonify(customer_service.search_customers(
        request.args.get("q"),
        request.args.get("limit", 10, type=int),
    ))


@customers_bp.post("")
@require_auth
def create_customer_route():
    customer = customer_service.create_customer(request.get_json(silent=True) or {})
    return jsonify({**customer.to_dict(), "message": "Customer created"}), 201


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    customer_service.delete_customer(customer_id)
    return jsonify({"message": "Customer deleted"}), 200


@customers_bp.get("/<int:customer_id>/history")
def customer_history_route(customer_id: int):
    return jsonify(customer_service.history(customer_id))


@customers_bp.get("/<int:customer_id>/recent-events")
def recent_events_route(customer_id: int):
    return jsonify(customer_service.recent_events(
        customer_id,
        request.args.get("limit", 5, type=int),
    ))
