from .catalog import Category, Supplier, InventoryItem, StockMovement
from .purchasing import PurchaseOrder, PurchaseOrderItem, DocumentSequence
from .sales import CustomerOrder, CustomerOrderItem
from .customers import Customer, Event, EventRegistration, PackBalance, PackTransaction
from .auth import Staff, SessionToken
from .statuses import (
    PurchaseOrderStatus,
    PaymentStatus,
    OrderType,
    OrderStatus,
    StockMovementReason,
)

__all__ = [
    'Category', 'Supplier', 'InventoryItem', 'StockMovement',
    'PurchaseOrder', 'PurchaseOrderItem', 'DocumentSequence',
    'CustomerOrder', 'CustomerOrderItem',
    'Customer', 'Event', 'EventRegistration', 'PackBalance', 'PackTransaction',
    'Staff', 'SessionToken',
    'PurchaseOrderStatus', 'PaymentStatus', 'OrderType', 'OrderStatus', 'StockMovementReason',
]
