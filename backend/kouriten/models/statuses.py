"""
Closed status vocabularies.

Every status column is mapped through ``status_column`` so the database only
ever holds one of the listed values, and transitions are checked by functions
here rather than by string comparisons scattered across services.
"""

from __future__ import annotations

import enum

from ..extensions import db


class PurchaseOrderStatus(str, enum.Enum):
    ORDERED = "Ordered"
    INVOICED = "Invoiced"
    RECEIVED = "Received"
    CANCELLED = "Cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    FULLY_PAID = "Fully Paid"


class OrderType(str, enum.Enum):
    IN_STOCK = "In-Stock"
    PREORDER = "Preorder"


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"
    # No route moves an order here yet; preorder fulfilment is an open extension point.
    FULFILLED = "Fulfilled"


class StockMovementReason(str, enum.Enum):
    INITIAL = "Initial"
    RECEIVE = "Receive"
    SALE = "Sale"
    ADJUST = "Adjust"


PO_TRANSITIONS: dict[PurchaseOrderStatus, set[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.ORDERED: {
        PurchaseOrderStatus.INVOICED,
        PurchaseOrderStatus.RECEIVED,
        PurchaseOrderStatus.CANCELLED,
    },
    PurchaseOrderStatus.INVOICED: {
        PurchaseOrderStatus.RECEIVED,
        PurchaseOrderStatus.CANCELLED,
    },
    PurchaseOrderStatus.RECEIVED: set(),
    PurchaseOrderStatus.CANCELLED: set(),
}

# Purchase orders that still count towards "on order" stock intelligence
ACTIVE_PO_STATUSES = (PurchaseOrderStatus.ORDERED, PurchaseOrderStatus.INVOICED)


def can_transition(current: PurchaseOrderStatus, target: PurchaseOrderStatus) -> bool:
    return target in PO_TRANSITIONS[current]


def parse_enum(enum_cls, value):
    """Accept either the display value ("In-Stock") or the member name ("IN_STOCK")."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    for member in enum_cls:
        if value == member.value or value.upper() == member.name:
            return member
    return None


def status_column(enum_cls, **kwargs):
    return db.Column(
        db.Enum(
            enum_cls,
            native_enum=False,
            length=32,
            validate_strings=True,
            values_callable=lambda members: [m.value for m in members],
        ),
        **kwargs,
    )
