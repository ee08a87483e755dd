from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .money import money_column, money_json
from .statuses import OrderStatus, OrderType, status_column


class CustomerOrder(db.Model):
    """
    Counter sale or preorder.

    total_amount is computed from the lines when the order is created;
    deposit_amount is the running total of money received against it.
    """
    __tablename__ = "customer_orders"
    __table_args__ = (
        db.Index("ix_customer_orders_type_status", "order_type", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    order_type = status_column(OrderType, nullable=False)
    status = status_column(OrderStatus, nullable=False, default=OrderStatus.PENDING)

    total_amount = money_column()
    deposit_amount = money_column()
    payment_method = db.Column(db.String(32), nullable=True)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "CustomerOrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="CustomerOrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<CustomerOrder id={self.id} type={self.order_type} status={self.status}>"

    @property
    def items_summary(self) -> str:
        return ", ".join(
            f"{line.item.card_name if line.item else line.inventory_id} (x{line.quantity})"
            for line in self.items
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "order_date": to_utc_z(self.order_date),
            "order_type": self.order_type.value,
            "status": self.status.value,
            "total_amount": money_json(self.total_amount),
            "deposit_amount": money_json(self.deposit_amount),
            "balance_due": money_json(max(self.total_amount - self.deposit_amount, 0)),
            "payment_method": self.payment_method,
        }


class CustomerOrderItem(db.Model):
    __tablename__ = "customer_order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("customer_orders.id"), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    # Price captured at sale time, not a live reference to inventory.price
    unit_price = money_column()

    order = db.relationship("CustomerOrder", back_populates="items")
    item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "inventory_id": self.inventory_id,
            "card_name": self.item.card_name if self.item else None,
            "game_title": self.item.game_title if self.item else None,
            "quantity": self.quantity,
            "unit_price": money_json(self.unit_price),
            "line_total": money_json(self.unit_price * self.quantity),
        }
