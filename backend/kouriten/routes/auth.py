# Overview: Flask API routes for staff login sessions.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, session_service
from ..validation import AuthenticationError, ValidationError
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate staff and create a session token.

    The token must be sent as `Authorization: Bearer <token>` on every
    mutating request.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        raise ValidationError("username and password required")

    staff = auth_service.authenticate(username, password)
    if staff is None:
        current_app.logger.info("Failed login for %r", username)
        raise AuthenticationError("Invalid credentials")

    session, token = session_service.create_session(staff.id)

    return jsonify({
        "user": {"id": staff.id, "username": staff.username},
        "staff": staff.to_dict(),
        "token": token,
        "expires_at": to_utc_z(session.expires_at),
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"staff": g.current_staff.to_dict()}), 200
