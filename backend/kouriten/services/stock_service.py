# Overview: Stock Adjustment Engine; the only writer of inventory.stock_quantity.

"""
Stock invariants (authoritative)

- stock_quantity changes only through adjust_stock, as a relative
  UPDATE ... SET stock_quantity = stock_quantity + :delta, or through
  set_stock_level, whose absolute write is conditional on the quantity it
  was computed from. Concurrent callers cannot lose updates.
- adjust_stock never commits; it joins the caller's unit_of_work so the
  stock change lands or disappears together with the business event.
- Every non-zero adjustment appends one StockMovement, so
  stock_quantity == SUM(quantity_delta) for stock that only moved here.
- Unless ALLOW_NEGATIVE_STOCK is set, the UPDATE is conditional on the
  result staying >= 0 and a refused update raises BusinessRuleError.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import InventoryItem, StockMovement, StockMovementReason
from ..validation import BusinessRuleError, ConflictError, NotFoundError, ValidationError, clamp_limit
from .transactions import lock_for_update


def _negative_stock_allowed() -> bool:
    return bool(current_app.config.get("ALLOW_NEGATIVE_STOCK", False))


def current_quantity(inventory_id: int) -> int:
    qty = (
        db.session.query(InventoryItem.stock_quantity)
        .filter(InventoryItem.id == inventory_id)
        .scalar()
    )
    if qty is None:
        raise NotFoundError(f"Inventory item {inventory_id} not found")
    return int(qty)


def adjust_stock(
    inventory_id: int,
    delta: int,
    *,
    reason: StockMovementReason,
    reference: str | None = None,
) -> int:
    """
    Apply stock_quantity += delta and log the movement. Returns the new quantity.

    Must be called inside an open unit_of_work.
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("Stock delta must be an integer")

    if delta == 0:
        return current_quantity(inventory_id)

    stmt = (
        update(InventoryItem)
        .where(InventoryItem.id == inventory_id)
        .values(stock_quantity=InventoryItem.stock_quantity + delta)
    )
    if delta < 0 and not _negative_stock_allowed():
        stmt = stmt.where(InventoryItem.stock_quantity + delta >= 0)

    result = db.session.execute(stmt.execution_options(synchronize_session=False))
    if not result.rowcount:
        on_hand = current_quantity(inventory_id)  # raises NotFoundError for unknown ids
        raise BusinessRuleError(
            f"Insufficient stock for inventory item {inventory_id}",
            details={"inventory_id": inventory_id, "on_hand": on_hand, "requested": -delta},
        )

    _record_movement(inventory_id, delta, reason, reference)
    return current_quantity(inventory_id)


def _record_movement(inventory_id: int, delta: int, reason: StockMovementReason, reference: str | None) -> None:
    db.session.add(StockMovement(
        inventory_id=inventory_id,
        quantity_delta=delta,
        reason=reason,
        reference=reference,
    ))
    db.session.flush()

    # Loaded instances in this session still hold the old value
    item = db.session.identity_map.get(db.session.identity_key(InventoryItem, inventory_id))
    if item is not None:
        db.session.expire(item, ["stock_quantity"])


def _locked_quantity(inventory_id: int) -> int:
    qty = lock_for_update(
        db.session.query(InventoryItem.stock_quantity).filter(InventoryItem.id == inventory_id)
    ).scalar()
    if qty is None:
        raise NotFoundError(f"Inventory item {inventory_id} not found")
    return int(qty)


def set_stock_level(inventory_id: int, target: int, *, reference: str | None = None) -> int:
    """
    Manual stock edit: write an absolute count and log the difference.

    The write only lands if stock still holds the value the delta was
    computed from; a sale or receipt committed in between raises
    ConflictError and nothing changes.
    """
    if target < 0 and not _negative_stock_allowed():
        raise BusinessRuleError("stock_quantity cannot be negative")

    counted_from = _locked_quantity(inventory_id)
    delta = target - counted_from
    if delta == 0:
        return counted_from

    result = db.session.execute(
        update(InventoryItem)
        .where(InventoryItem.id == inventory_id, InventoryItem.stock_quantity == counted_from)
        .values(stock_quantity=target)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise ConflictError(
            f"Stock for inventory item {inventory_id} changed during the edit",
            details={"inventory_id": inventory_id, "expected": counted_from, "on_hand": current_quantity(inventory_id)},
        )

    _record_movement(inventory_id, delta, StockMovementReason.ADJUST, reference)
    return target


def list_movements(inventory_id: int, limit: int | None = None) -> list[dict]:
    current_quantity(inventory_id)
    rows = (
        db.session.query(StockMovement)
        .filter(StockMovement.inventory_id == inventory_id)
        .order_by(StockMovement.id.desc())
        .limit(clamp_limit(limit))
        .all()
    )
    return [row.to_dict() for row in rows]
