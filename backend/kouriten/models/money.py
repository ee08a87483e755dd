from __future__ import annotations

from decimal import Decimal

from ..extensions import db

# Four places keeps per-unit supplier costs exact; totals round only for display.
MONEY = db.Numeric(14, 4, asdecimal=True)

ZERO = Decimal("0")


def money_column(**kwargs):
    kwargs.setdefault("nullable", False)
    kwargs.setdefault("default", ZERO)
    return db.Column(MONEY, **kwargs)


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money_json(value) -> float | None:
    if value is None:
        return None
    return float(value)
