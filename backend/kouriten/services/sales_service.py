"""
Sales Service - counter sales and preorders

In-Stock orders leave the shelf immediately: every line decrements stock in
the same unit of work that writes the order. Preorders record the customer's
intent and deposit only; their stock is untouched until fulfilment, which is
not implemented yet.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import or_

from ..extensions import db
from ..models import (
    Customer,
    CustomerOrder,
    CustomerOrderItem,
    InventoryItem,
    OrderStatus,
    OrderType,
    StockMovementReason,
)
from ..models.money import ZERO
from ..models.statuses import parse_enum
from ..validation import (
    NotFoundError,
    ValidationError,
    clamp_limit,
    parse_int,
    parse_money,
)
from .status_service import order_status_for
from .stock_service import adjust_stock
from .transactions import lock_for_update, unit_of_work


def _parse_sale_lines(items) -> list[tuple[int, int, Decimal]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    lines = []
    for index, entry in enumerate(items, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if entry.get("id") is None or entry.get("qty") is None or entry.get("price") is None:
            raise ValidationError(f"items[{index}] requires id, qty and price")
        inventory_id = parse_int(entry["id"], "id")
        qty = parse_int(entry["qty"], "qty")
        price = parse_money(entry["price"], "price")
        if qty <= 0:
            raise ValidationError(f"items[{index}].qty must be > 0")
        if price < ZERO:
            raise ValidationError(f"items[{index}].price must be >= 0")
        lines.append((inventory_id, qty, price))
    return lines


def _parse_payment_method(value) -> str | None:
    """Free text from the till (Cash, PayNow, split card/cash, ...)."""
    if value is None:
        return None
    method = str(value).strip()
    if len(method) > 32:
        raise ValidationError("payment_method exceeds max length 32")
    return method or None


def create_order(
    *,
    customer_id: int,
    order_type,
    items: list[dict],
    payment_method: str | None = None,
    deposit_amount=None,
) -> dict:
    """
    Record a sale or preorder.

    The total is always computed here from qty * price; any client total is
    ignored. Without an explicit deposit, In-Stock sales are taken as paid in
    full at the till and preorders start with nothing paid.
    """
    kind = parse_enum(OrderType, order_type)
    if kind is None:
        raise ValidationError(f"Invalid order_type. Must be one of: {', '.join(t.value for t in OrderType)}")
    lines = _parse_sale_lines(items)
    method = _parse_payment_method(payment_method)

    total = sum((qty * price for _, qty, price in lines), ZERO)
    if deposit_amount in (None, ""):
        deposit = total if kind == OrderType.IN_STOCK else ZERO
    else:
        deposit = parse_money(deposit_amount, "deposit_amount")
        if deposit < ZERO:
            raise ValidationError("deposit_amount must be >= 0")

    with unit_of_work("sale.create") as session:
        if session.get(Customer, customer_id) is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        order = CustomerOrder(
            customer_id=customer_id,
            order_type=kind,
            status=order_status_for(total, deposit),
            total_amount=total,
            deposit_amount=deposit,
            payment_method=method,
        )
        session.add(order)
        session.flush()

        for inventory_id, qty, price in lines:
            if session.get(InventoryItem, inventory_id) is None:
                raise NotFoundError(f"Inventory item {inventory_id} not found")
            session.add(CustomerOrderItem(
                order_id=order.id,
                inventory_id=inventory_id,
                quantity=qty,
                unit_price=price,
            ))
            if kind == OrderType.IN_STOCK:
                adjust_stock(
                    inventory_id,
                    -qty,
                    reason=StockMovementReason.SALE,
                    reference=f"ORDER-{order.id}",
                )
        session.flush()

        result = {
            "id": order.id,
            "order_type": order.order_type.value,
            "status": order.status.value,
            "total_amount": float(total),
            "deposit_amount": float(deposit),
        }

    return result


def record_order_payment(order_id: int, amount) -> dict:
    """Add a payment to an order's running deposit and recompute its status."""
    if amount in (None, ""):
        raise ValidationError("amount is required")
    value = parse_money(amount, "amount")
    if value <= ZERO:
        raise ValidationError("amount must be > 0")

    with unit_of_work("sale.payment"):
        order = lock_for_update(
            db.session.query(CustomerOrder).filter(CustomerOrder.id == order_id)
        ).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        order.deposit_amount = order.deposit_amount + value
        order.status = order_status_for(order.total_amount, order.deposit_amount, current=order.status)
        db.session.flush()
        result = order.to_dict()

    return result


def get_order(order_id: int) -> dict:
    order = db.session.get(CustomerOrder, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    data = order.to_dict()
    data["items"] = [line.to_dict() for line in order.items]
    return data


def order_history(
    *,
    search: str | None = None,
    status: str | None = None,
    order_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int | None = None,
) -> list[dict]:
    query = db.session.query(CustomerOrder).join(Customer, Customer.id == CustomerOrder.customer_id)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.mobile_number.ilike(pattern)))
    if status:
        parsed = parse_enum(OrderStatus, status)
        if parsed is None:
            raise ValidationError(f"Unknown order status: {status}")
        query = query.filter(CustomerOrder.status == parsed)
    if order_type:
        parsed_type = parse_enum(OrderType, order_type)
        if parsed_type is None:
            raise ValidationError(f"Unknown order_type: {order_type}")
        query = query.filter(CustomerOrder.order_type == parsed_type)
    if start_date:
        query = query.filter(CustomerOrder.order_date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(CustomerOrder.order_date <= datetime.combine(end_date, time.max))

    orders = (
        query.order_by(CustomerOrder.order_date.desc(), CustomerOrder.id.desc())
        .limit(clamp_limit(limit))
        .all()
    )
    return [order.to_dict() for order in orders]


def open_preorders() -> list[dict]:
    """Preorders still waiting for stock, oldest first (the pickup queue)."""
    orders = (
        db.session.query(CustomerOrder)
        .filter(
            CustomerOrder.order_type == OrderType.PREORDER,
            CustomerOrder.status != OrderStatus.FULFILLED,
        )
        .order_by(CustomerOrder.order_date.asc(), CustomerOrder.id.asc())
        .all()
    )

    results = []
    for order in orders:
        data = order.to_dict()
        data["mobile_number"] = order.customer.mobile_number if order.customer else None
        data["items_summary"] = order.items_summary
        data["game_tags"] = ",".join(sorted({
            line.item.game_title for line in order.items if line.item and line.item.game_title
        }))
        results.append(data)
    return results
