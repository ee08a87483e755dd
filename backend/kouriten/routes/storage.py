# Overview: Flask API routes for the pack storage ledger.

"""
Pack Storage Routes

POST /api/storage/update body:
{
    "customer_id": 4,
    "game_title": "One Piece",
    "pack_type": "OP-07 Booster",
    "change_amount": 3,          // signed, non-zero
    "event_id": 2,               // optional; positive changes need a registration
    "note": "Top 4 prize"        // optional
}
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import pack_ledger_service
from ..validation import require_fields


storage_bp = Blueprint("storage", __name__, url_prefix="/api/storage")


@storage_bp.get("")
def list_balances_route():
    return jsonify(pack_ledger_service.list_balances(request.args.get("search")))


@storage_bp.get("/history/<int:customer_id>")
def pack_history_route(customer_id: int):
    return jsonify(pack_ledger_service.history(customer_id))


@storage_bp.post("/update")
@require_auth
def update_storage_route():
    data = request.get_json(silent=True) or {}
    require_fields(data, "customer_id", "game_title", "pack_type", "change_amount")
    balance = pack_ledger_service.apply_pack_change(
        data["customer_id"],
        data["game_title"],
        data["pack_type"],
        data["change_amount"],
        event_id=data.get("event_id"),
        note=data.get("note"),
    )
    return jsonify({"message": "Pack storage updated", "quantity": balance}), 200
