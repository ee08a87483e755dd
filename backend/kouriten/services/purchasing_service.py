# Overview: Purchase order coordinator; creation, receiving, payment and queries.

"""
Purchase Order Service

LIFECYCLE:
1. Ordered: created with all lines, nothing received
2. Invoiced: supplier invoice in hand; allocations count towards stock intelligence
3. Received: every line fully received (set automatically by receiving)
4. Cancelled: abandoned before receipt

Creation and receiving are all-or-nothing: a failure on any line rolls back
the header, every line and every stock adjustment made in the same call.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, or_, select, update

from ..extensions import db
from ..models import (
    InventoryItem,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    StockMovementReason,
    Supplier,
)
from ..models.money import ZERO
from ..models.statuses import can_transition, parse_enum
from ..validation import (
    BusinessRuleError,
    NotFoundError,
    ValidationError,
    clamp_limit,
    parse_date,
    parse_int,
    parse_money,
)
from .document_service import get_po_number_generator
from .status_service import payment_status_for
from .stock_service import adjust_stock
from .transactions import lock_for_update, unit_of_work


def _get_po(po_id: int, *, lock: bool = False) -> PurchaseOrder:
    query = db.session.query(PurchaseOrder).filter(PurchaseOrder.id == po_id)
    if lock:
        query = lock_for_update(query)
    po = query.first()
    if po is None:
        raise NotFoundError(f"Purchase order {po_id} not found")
    return po


def _parse_order_lines(items) -> list[tuple[int, int, Decimal]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    lines = []
    for index, entry in enumerate(items, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if entry.get("inventory_id") is None or entry.get("qty") is None:
            raise ValidationError(f"items[{index}] requires inventory_id and qty")
        inventory_id = parse_int(entry["inventory_id"], "inventory_id")
        qty = parse_int(entry["qty"], "qty")
        cost = parse_money(entry.get("cost", 0), "cost")
        if qty <= 0:
            raise ValidationError(f"items[{index}].qty must be > 0")
        if cost < ZERO:
            raise ValidationError(f"items[{index}].cost must be >= 0")
        lines.append((inventory_id, qty, cost))
    return lines


def create_purchase_order(
    *,
    supplier_id: int,
    items: list[dict],
    po_number: str | None = None,
    paid_amount=None,
    notes: str | None = None,
) -> dict:
    """
    Create a PO header and its lines in one unit of work.

    total_cost is the sum of qty * cost over the lines. When po_number is
    omitted, the configured generator supplies one.

    Raises:
        ValidationError: malformed lines or amounts
        NotFoundError: unknown supplier or inventory item
        ConflictError: po_number already exists
    """
    lines = _parse_order_lines(items)
    paid = parse_money(paid_amount, "paid_amount") if paid_amount not in (None, "") else ZERO
    if paid < ZERO:
        raise ValidationError("paid_amount must be >= 0")
    if po_number is not None:
        po_number = str(po_number).strip() or None

    with unit_of_work("purchase_order.create") as session:
        if session.get(Supplier, supplier_id) is None:
            raise NotFoundError(f"Supplier {supplier_id} not found")

        number = po_number or get_po_number_generator().next_number()
        total = sum((qty * cost for _, qty, cost in lines), ZERO)

        po = PurchaseOrder(
            supplier_id=supplier_id,
            po_number=number,
            status=PurchaseOrderStatus.ORDERED,
            payment_status=payment_status_for(total, paid),
            total_cost=total,
            paid_amount=paid,
            notes=notes,
        )
        session.add(po)
        session.flush()

        for inventory_id, qty, cost in lines:
            if session.get(InventoryItem, inventory_id) is None:
                raise NotFoundError(f"Inventory item {inventory_id} not found")
            session.add(PurchaseOrderItem(
                po_id=po.id,
                inventory_id=inventory_id,
                ordered_qty=qty,
                received_qty=0,
                allocated_qty=0,
                unit_cost=cost,
            ))
        session.flush()

        result = {"id": po.id, "po_number": po.po_number, "total_cost": float(total)}

    current_app.logger.info("Created purchase order %s with %d lines", result["po_number"], len(lines))
    return result


def receive_purchase_order(po_id: int, items: list[dict]) -> dict:
    """
    Book a supplier delivery against a PO.

    For each entry: received_qty += qty_received on the line and the matching
    inventory row gains the same quantity. All entries commit together or
    none do. When every line is fully received the PO becomes Received.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    allow_over_receive = bool(current_app.config.get("ALLOW_OVER_RECEIVE", False))

    with unit_of_work("purchase_order.receive") as session:
        po = _get_po(po_id, lock=True)
        if po.status == PurchaseOrderStatus.CANCELLED:
            raise BusinessRuleError(f"Purchase order {po.po_number} is cancelled")

        for index, entry in enumerate(items, start=1):
            if not isinstance(entry, dict):
                raise ValidationError(f"items[{index}] must be an object")
            if entry.get("po_item_id") is None or entry.get("qty_received") is None:
                raise ValidationError(f"items[{index}] requires po_item_id and qty_received")
            po_item_id = parse_int(entry["po_item_id"], "po_item_id")
            qty = parse_int(entry["qty_received"], "qty_received")
            if qty <= 0:
                raise ValidationError(f"items[{index}].qty_received must be > 0")

            line = session.get(PurchaseOrderItem, po_item_id)
            if line is None or line.po_id != po.id:
                raise NotFoundError(f"Line {po_item_id} not found on purchase order {po.po_number}")
            if entry.get("inventory_id") is not None:
                if parse_int(entry["inventory_id"], "inventory_id") != line.inventory_id:
                    raise ValidationError(f"Line {po_item_id} does not stock inventory item {entry['inventory_id']}")

            stmt = (
                update(PurchaseOrderItem)
                .where(PurchaseOrderItem.id == po_item_id)
                .values(received_qty=PurchaseOrderItem.received_qty + qty)
                .execution_options(synchronize_session=False)
            )
            if not allow_over_receive:
                stmt = stmt.where(PurchaseOrderItem.received_qty + qty <= PurchaseOrderItem.ordered_qty)
            if not session.execute(stmt).rowcount:
                session.refresh(line)
                raise BusinessRuleError(
                    f"Receiving {qty} would exceed the ordered quantity on line {po_item_id}",
                    details={
                        "po_item_id": po_item_id,
                        "ordered_qty": line.ordered_qty,
                        "received_qty": line.received_qty,
                    },
                )
            session.expire(line, ["received_qty"])

            adjust_stock(
                line.inventory_id,
                qty,
                reason=StockMovementReason.RECEIVE,
                reference=po.po_number,
            )

        session.flush()
        if po.items and all(line.received_qty >= line.ordered_qty for line in po.items):
            po.status = PurchaseOrderStatus.RECEIVED
        session.flush()

        result = {
            "id": po.id,
            "po_number": po.po_number,
            "status": po.status.value,
            "items": [line.to_dict() for line in po.items],
        }

    return result


def record_po_payment(
    po_id: int,
    *,
    amount_paid=None,
    final_total_cost=None,
    invoice_no: str | None = None,
    payment_date=None,
) -> dict:
    """
    Record a supplier payment and/or the invoiced total.

    paid_amount += amount_paid; total_cost is replaced when final_total_cost
    is given, and payment_status is recomputed against the new total in the
    same call (the only path that can take a PO back to Partial).
    """
    amount = parse_money(amount_paid, "amount_paid") if amount_paid not in (None, "") else ZERO
    if amount < ZERO:
        raise ValidationError("amount_paid must be >= 0")
    new_total = None
    if final_total_cost not in (None, ""):
        new_total = parse_money(final_total_cost, "final_total_cost")
        if new_total < ZERO:
            raise ValidationError("final_total_cost must be >= 0")
    paid_on = parse_date(payment_date, "payment_date")

    with unit_of_work("purchase_order.payment"):
        po = _get_po(po_id, lock=True)
        if new_total is not None:
            po.total_cost = new_total
        po.paid_amount = po.paid_amount + amount
        po.payment_status = payment_status_for(po.total_cost, po.paid_amount)
        if invoice_no is not None:
            po.invoice_no = str(invoice_no).strip() or None
        if paid_on is not None:
            po.payment_date = paid_on
        db.session.flush()
        result = po.to_dict()

    return result


def update_purchase_order_status(po_id: int, status) -> dict:
    target = parse_enum(PurchaseOrderStatus, status)
    if target is None:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(s.value for s in PurchaseOrderStatus)}"
        )

    with unit_of_work("purchase_order.status"):
        po = _get_po(po_id, lock=True)
        if po.status != target:
            if not can_transition(po.status, target):
                raise BusinessRuleError(f"Cannot move purchase order from {po.status.value} to {target.value}")
            po.status = target
        db.session.flush()
        result = po.to_dict()

    return result


def set_allocations(po_id: int, items: list[dict]) -> dict:
    """Set allocated_qty per line (0 <= allocated_qty <= ordered_qty)."""
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    with unit_of_work("purchase_order.allocations") as session:
        po = _get_po(po_id, lock=True)
        if po.status in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED):
            raise BusinessRuleError(f"Cannot change allocations on a {po.status.value} purchase order")
        for index, entry in enumerate(items, start=1):
            if not isinstance(entry, dict) or entry.get("po_item_id") is None or entry.get("allocated_qty") is None:
                raise ValidationError(f"items[{index}] requires po_item_id and allocated_qty")
            line = session.get(PurchaseOrderItem, parse_int(entry["po_item_id"], "po_item_id"))
            if line is None or line.po_id != po.id:
                raise NotFoundError(f"Line {entry['po_item_id']} not found on purchase order {po.po_number}")
            allocated = parse_int(entry["allocated_qty"], "allocated_qty")
            if allocated < 0 or allocated > line.ordered_qty:
                raise ValidationError(f"allocated_qty must be between 0 and {line.ordered_qty}")
            line.allocated_qty = allocated
        session.flush()
        result = {"id": po.id, "items": [line.to_dict() for line in po.items]}

    return result


def _original_value_subquery():
    return (
        select(func.coalesce(func.sum(PurchaseOrderItem.ordered_qty * PurchaseOrderItem.unit_cost), 0))
        .where(PurchaseOrderItem.po_id == PurchaseOrder.id)
        .correlate(PurchaseOrder)
        .scalar_subquery()
    )


def list_purchase_orders(
    *,
    search: str | None = None,
    status: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int | None = None,
) -> list[dict]:
    """
    Purchase order history, newest first.

    search matches po_number, supplier name or invoice number. Dates are
    inclusive on order_date.
    """
    query = (
        db.session.query(PurchaseOrder, _original_value_subquery().label("original_value"))
        .outerjoin(Supplier, Supplier.id == PurchaseOrder.supplier_id)
    )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            PurchaseOrder.po_number.ilike(pattern),
            Supplier.name.ilike(pattern),
            PurchaseOrder.invoice_no.ilike(pattern),
        ))
    if status:
        parsed = parse_enum(PurchaseOrderStatus, status)
        if parsed is None:
            raise ValidationError(f"Unknown purchase order status: {status}")
        query = query.filter(PurchaseOrder.status == parsed)
    if start_date:
        query = query.filter(PurchaseOrder.order_date >= start_date)
    if end_date:
        query = query.filter(PurchaseOrder.order_date <= end_date)

    rows = (
        query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .limit(clamp_limit(limit))
        .all()
    )

    results = []
    for po, original_value in rows:
        data = po.to_dict()
        data["supplier_name"] = data["supplier_name"] or "Unknown Supplier"
        data["original_value"] = float(original_value or 0)
        results.append(data)
    return results


def get_purchase_order(po_id: int) -> dict:
    po = _get_po(po_id)
    data = po.to_dict()
    data["items"] = [line.to_dict() for line in po.items]
    return data
