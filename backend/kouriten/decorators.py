# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a live staff session.

    Sets g.current_staff. Returns 401 when the header is missing or the
    token is unknown, expired, revoked or belongs to a deactivated account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        staff = session_service.validate_session(token)
        if staff is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_staff = staff
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function
