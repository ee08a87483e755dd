# Overview: Staff accounts and password checks.

"""
Authentication Service

WHY: Every stock, purchase and pack mutation is performed by a logged-in
staff member. Passwords are hashed with bcrypt and validated for strength
when set.

SECURITY NOTES:
- bcrypt cost factor 12
- Minimum 8 characters with upper, lower, digit and special character
- Session tokens are handled separately (see session_service.py)
"""

from __future__ import annotations

import re

import bcrypt

from ..extensions import db
from ..models import Staff
from ..validation import ConflictError, ValidationError
from .transactions import unit_of_work

STAFF_ROLES = {"staff", "manager", "admin"}


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Timing-safe check via bcrypt.checkpw.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_staff(username: str, password: str, role: str = "staff") -> Staff:
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")
    if len(username) > 64:
        raise ValidationError("username exceeds max length 64")
    if role not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(STAFF_ROLES))}")

    password_hash = hash_password(password)

    with unit_of_work("staff.create") as session:
        if session.query(Staff.id).filter(Staff.username == username).first():
            raise ConflictError(f"Staff username '{username}' already exists")
        staff = Staff(username=username, password_hash=password_hash, role=role)
        session.add(staff)
        session.flush()

    return staff


def authenticate(username: str, password: str) -> Staff | None:
    """Returns the active Staff row for valid credentials, otherwise None."""
    if not username or not password:
        return None
    staff = (
        db.session.query(Staff)
        .filter(Staff.username == username.strip(), Staff.is_active.is_(True))
        .first()
    )
    if staff is None or not verify_password(password, staff.password_hash):
        return None
    return staff


def list_staff() -> list[Staff]:
    return db.session.query(Staff).order_by(Staff.username.asc()).all()
