from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z, today, utcnow
from .money import money_column, money_json
from .statuses import PaymentStatus, PurchaseOrderStatus, status_column


class PurchaseOrder(db.Model):
    """
    Supplier-facing restock order.

    total_cost starts as the sum of the ordered lines and may be replaced by
    the invoiced figure when payment is recorded.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_status_date", "status", "order_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    po_number = db.Column(db.String(64), nullable=False, unique=True)
    order_date = db.Column(db.Date, nullable=False, default=today)

    status = status_column(PurchaseOrderStatus, nullable=False, default=PurchaseOrderStatus.ORDERED)
    payment_status = status_column(PaymentStatus, nullable=False, default=PaymentStatus.PENDING)

    total_cost = money_column()
    paid_amount = money_column()
    invoice_no = db.Column(db.String(64), nullable=True)
    payment_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    items = db.relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} po_number={self.po_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "po_number": self.po_number,
            "order_date": to_iso_date(self.order_date),
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "total_cost": money_json(self.total_cost),
            "paid_amount": money_json(self.paid_amount),
            "invoice_no": self.invoice_no,
            "payment_date": to_iso_date(self.payment_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseOrderItem(db.Model):
    __tablename__ = "po_items"
    __table_args__ = (
        db.Index("ix_po_items_inventory", "inventory_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    po_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False)

    ordered_qty = db.Column(db.Integer, nullable=False)
    # Only grows, through receive_purchase_order
    received_qty = db.Column(db.Integer, nullable=False, default=0)
    allocated_qty = db.Column(db.Integer, nullable=False, default=0)
    unit_cost = money_column()

    purchase_order = db.relationship("PurchaseOrder", back_populates="items")
    item = db.relationship("InventoryItem")

    @property
    def outstanding_qty(self) -> int:
        return max(self.ordered_qty - self.received_qty, 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "po_id": self.po_id,
            "inventory_id": self.inventory_id,
            "card_name": self.item.card_name if self.item else None,
            "game_title": self.item.game_title if self.item else None,
            "ordered_qty": self.ordered_qty,
            "received_qty": self.received_qty,
            "allocated_qty": self.allocated_qty,
            "outstanding_qty": self.outstanding_qty,
            "unit_cost": money_json(self.unit_cost),
        }


class DocumentSequence(db.Model):
    """Monotonic counter per document type (backs sequential PO numbers)."""
    __tablename__ = "document_sequences"

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
