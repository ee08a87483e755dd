# Overview: Bearer session tokens for staff logins.

"""
Session Token Management

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute lifetime of SESSION_TTL_HOURS (no idle timeout)
- Revocable on logout
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Staff
from ..time_utils import utcnow
from .transactions import unit_of_work


def generate_token() -> str:
    """64 hex characters; the plaintext is only ever returned to the client."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    WHY SHA-256 not bcrypt: tokens are already high-entropy, so a fast hash
    is sufficient and keeps per-request validation cheap.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(staff_id: int) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token)."""
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 12))
    plaintext_token = generate_token()
    now = utcnow()

    with unit_of_work("session.create") as session:
        record = SessionToken(
            staff_id=staff_id,
            token_hash=hash_token(plaintext_token),
            created_at=now,
            expires_at=now + ttl,
        )
        session.add(record)
        session.flush()

    return record, plaintext_token


def validate_session(token: str) -> Staff | None:
    """
    Returns the Staff behind a live token, or None when the token is
    unknown, expired, revoked or belongs to a deactivated account.
    """
    if not token:
        return None
    record = (
        db.session.query(SessionToken)
        .filter(
            SessionToken.token_hash == hash_token(token),
            SessionToken.revoked_at.is_(None),
        )
        .first()
    )
    if record is None or record.expires_at < utcnow():
        return None
    staff = record.staff
    if staff is None or not staff.is_active:
        return None
    return staff


def revoke_session(token: str) -> bool:
    """Returns True if a live session was revoked."""
    with unit_of_work("session.revoke") as session:
        record = (
            session.query(SessionToken)
            .filter(
                SessionToken.token_hash == hash_token(token),
                SessionToken.revoked_at.is_(None),
            )
            .first()
        )
        if record is None:
            return False
        record.revoked_at = utcnow()
    return True
