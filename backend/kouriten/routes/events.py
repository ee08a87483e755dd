# Overview: Flask API routes for events and registrations.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import event_service
from ..validation import require_fields


events_bp = Blueprint("events", __name__, url_prefix="/api/events")


@events_bp.get("")
def list_events_route():
    """?upcoming=true limits the list to events that have not started."""
    upcoming = request.args.get("upcoming", "false").lower() == "true"
    return jsonify(event_service.list_events(upcoming=upcoming))


@events_bp.post("")
@require_auth
def create_event_route():
    event = event_service.create_event(request.get_json(silent=True) or {})
    return jsonify({**event.to_dict(), "message": "Event created"}), 201


@events_bp.post("/<int:event_id>/registrations")
@require_auth
def register_customer_route(event_id: int):
    data = request.get_json(silent=True) or {}
    require_fields(data, "customer_id")
    registration = event_service.register_customer(event_id, data["customer_id"])
    return jsonify({**registration.to_dict(), "message": "Customer registered"}), 201


@events_bp.get("/<int:event_id>/registrations")
def list_registrations_route(event_id: int):
    return jsonify(event_service.list_registrations(event_id))
