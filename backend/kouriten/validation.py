# Overview: Error taxonomy and request payload validation.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_date, parse_iso_datetime


# Maximum money value accepted from clients: 9,999,999.99
MAX_MONEY = Decimal("9999999.99")


class ShopError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ShopError):
    """Malformed or missing input; maps to 400."""
    status_code = 400


class AuthenticationError(ShopError):
    status_code = 401


class NotFoundError(ShopError):
    status_code = 404


class ConflictError(ShopError):
    """409-level uniqueness conflict (e.g., duplicate category name or po_number)."""
    status_code = 409


class ReferentialIntegrityError(ShopError):
    """Delete blocked because other rows still reference the target."""
    status_code = 409


class BusinessRuleError(ShopError):
    """Request is well-formed but violates a shop policy."""
    status_code = 422


class TransactionError(ShopError):
    """A coordinated unit of work failed and was rolled back in full."""
    status_code = 500


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Per-model allowlist for form payloads.

    writable_fields are the only keys copied from a request; anything else
    (including stock_quantity and derived statuses) is dropped.
    required_on_create must be present and non-blank on POST.
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_int(value: Any, field: str) -> int:
    """Strict integer coercion; rejects bools, floats and decimal strings."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15") and decimals (e.g., "12.5")
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_money(value: Any, field: str) -> Decimal:
    """Money arrives as JSON numbers or numeric strings; stored as Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            # str() keeps 59.999 from becoming 59.99899999...
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if abs(amount) > MAX_MONEY:
        raise ValidationError(f"{field} cannot exceed {MAX_MONEY:,}")
    return amount


def parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    raise ValidationError(f"{field} must be a date")


def parse_datetime(value: Any, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
    raise ValidationError(f"{field} must be a datetime")


def date_query_arg(args, name: str, alias: str) -> date | None:
    """YYYY-MM-DD query parameter; the front end sends camelCase, alias is the snake_case spelling."""
    raw = args.get(name)
    if raw in (None, ""):
        raw = args.get(alias)
    return parse_date(raw, name)


def require_fields(payload: dict, *fields: str) -> None:
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def require_list(payload: dict, field: str) -> list:
    items = payload.get(field)
    if not isinstance(items, list) or not items:
        raise ValidationError(f"{field} must be a non-empty list")
    for entry in items:
        if not isinstance(entry, dict):
            raise ValidationError(f"each entry in {field} must be an object")
    return items


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, col.key)

    if isinstance(coltype, Numeric):
        return parse_money(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, DateTime):
        return parse_datetime(value, col.key)

    if isinstance(coltype, Date):
        return parse_date(value, col.key)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a request body into a patch dict that is safe to setattr on a model.

    Values are coerced by column type (Integer, Numeric money, DateTime,
    String with its max length) and nulls are checked against the column.
    partial=True is used for PUT and skips the required-field check.

    Unlike a strict API, unknown keys are ignored: the shop front end posts
    whole form objects and extra keys carry no meaning here.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        # Front-end forms send "" for untouched optional inputs
        if raw == "" and col.nullable:
            raw = None

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # card_name, name and similar NOT NULL text cannot be whitespace
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_inventory(patch: dict) -> None:
    """Inventory rules beyond column metadata: no negative prices, pack counts of at least 1."""
    for field in ("price", "cost_price"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
    for field in ("packs_per_box", "boxes_per_case"):
        if field in patch and patch[field] is not None and patch[field] < 1:
            raise ValidationError(f"{field} must be >= 1")


def clamp_limit(value: int | None, *, default: int = 100, maximum: int = 500) -> int:
    if value is None:
        return default
    if value < 1:
        return 1
    if value > maximum:
        return maximum
    return value
