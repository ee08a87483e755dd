# Overview: Derived status calculations (payment status, stock intelligence).

"""
Derived statuses are recomputed from stored amounts, never trusted from
clients.

Purchase orders: Fully Paid once paid_amount reaches total_cost exactly
(supplier invoices are settled to the cent; no tolerance).

Customer orders: Paid once deposit_amount is within PAYMENT_TOLERANCE of
total_amount, absorbing rounding from split cash/card payments at the till.
A Paid or Fulfilled order is never moved back by a payment.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import and_, func, select

from ..extensions import db
from ..models import (
    InventoryItem,
    OrderStatus,
    PaymentStatus,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from ..models.money import ZERO, to_decimal
from ..models.statuses import ACTIVE_PO_STATUSES

PAYMENT_TOLERANCE = Decimal("0.01")


def payment_status_for(total, paid) -> PaymentStatus:
    """Purchase-order payment status for the given totals."""
    total = to_decimal(total)
    paid = to_decimal(paid)
    if paid <= ZERO:
        return PaymentStatus.PENDING
    if paid >= total:
        return PaymentStatus.FULLY_PAID
    return PaymentStatus.PARTIAL


def order_status_for(total, paid, current: OrderStatus | None = None) -> OrderStatus:
    """Customer-order status after money has been received."""
    if current in (OrderStatus.PAID, OrderStatus.FULFILLED):
        return current
    total = to_decimal(total)
    paid = to_decimal(paid)
    if paid >= total - PAYMENT_TOLERANCE:
        return OrderStatus.PAID
    if paid > ZERO:
        return OrderStatus.PARTIAL
    return OrderStatus.PENDING


def _qty_ordered_subquery():
    return (
        select(func.coalesce(func.sum(PurchaseOrderItem.ordered_qty), 0))
        .select_from(PurchaseOrderItem)
        .join(PurchaseOrder, PurchaseOrder.id == PurchaseOrderItem.po_id)
        .where(
            PurchaseOrderItem.inventory_id == InventoryItem.id,
            PurchaseOrder.status == PurchaseOrderStatus.ORDERED,
        )
        .correlate(InventoryItem)
        .scalar_subquery()
    )


def _qty_allocated_subquery():
    return (
        select(func.coalesce(func.sum(PurchaseOrderItem.allocated_qty), 0))
        .select_from(PurchaseOrderItem)
        .join(PurchaseOrder, PurchaseOrder.id == PurchaseOrderItem.po_id)
        .where(
            PurchaseOrderItem.inventory_id == InventoryItem.id,
            PurchaseOrder.status == PurchaseOrderStatus.INVOICED,
        )
        .correlate(InventoryItem)
        .scalar_subquery()
    )


def _active_po_count_subquery():
    return (
        select(func.count(func.distinct(PurchaseOrder.id)))
        .select_from(PurchaseOrder)
        .join(PurchaseOrderItem, PurchaseOrderItem.po_id == PurchaseOrder.id)
        .where(
            and_(
                PurchaseOrderItem.inventory_id == InventoryItem.id,
                PurchaseOrder.status.in_(ACTIVE_PO_STATUSES),
            )
        )
        .correlate(InventoryItem)
        .scalar_subquery()
    )


def stock_intelligence_query():
    """
    Inventory rows joined with their on-order figures.

    Yields (InventoryItem, qty_ordered, qty_allocated, active_po_count).
    """
    return db.session.query(
        InventoryItem,
        _qty_ordered_subquery().label("qty_ordered"),
        _qty_allocated_subquery().label("qty_allocated"),
        _active_po_count_subquery().label("active_po_count"),
    )


def stock_intelligence_for(inventory_id: int) -> dict:
    row = stock_intelligence_query().filter(InventoryItem.id == inventory_id).first()
    if row is None:
        return {"qty_ordered": 0, "qty_allocated": 0, "active_po_count": 0}
    _, ordered, allocated, active = row
    return {
        "qty_ordered": int(ordered or 0),
        "qty_allocated": int(allocated or 0),
        "active_po_count": int(active or 0),
    }
