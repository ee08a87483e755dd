from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .money import money_column, money_json
from .statuses import StockMovementReason, status_column


class Category(db.Model):
    """Product type shown on the shop front (Booster Box, Single, Sleeves, ...)."""
    __tablename__ = "categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    payment_terms = db.Column(db.String(64), nullable=False, default="Immediate")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "payment_terms": self.payment_terms,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryItem(db.Model):
    """
    Sellable stock line (sealed product, single card, accessory).

    stock_quantity is only ever changed through stock_service.adjust_stock,
    which writes a StockMovement for every committed change.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.Index("ix_inventory_game_card", "game_title", "card_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(64), nullable=True, unique=True)
    game_title = db.Column(db.String(128), nullable=True, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    card_id = db.Column(db.String(64), nullable=True)
    card_name = db.Column(db.String(255), nullable=False)
    set_name = db.Column(db.String(255), nullable=True)

    price = money_column()
    cost_price = money_column()

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    packs_per_box = db.Column(db.Integer, nullable=False, default=1)
    boxes_per_case = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", backref=db.backref("items", lazy=True))
    movements = db.relationship(
        "StockMovement",
        cascade="all, delete-orphan",
        order_by="StockMovement.id",
        back_populates="item",
    )

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} card_name={self.card_name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "game_title": self.game_title,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "card_id": self.card_id,
            "card_name": self.card_name,
            "set_name": self.set_name,
            "price": money_json(self.price),
            "cost_price": money_json(self.cost_price),
            "stock_quantity": self.stock_quantity,
            "packs_per_box": self.packs_per_box,
            "boxes_per_case": self.boxes_per_case,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """Append-only record of every committed stock adjustment."""
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_item_created", "inventory_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False)
    quantity_delta = db.Column(db.Integer, nullable=False)
    reason = status_column(StockMovementReason, nullable=False)
    reference = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    item = db.relationship("InventoryItem", back_populates="movements")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_id": self.inventory_id,
            "quantity_delta": self.quantity_delta,
            "reason": self.reason.value,
            "reference": self.reference,
            "created_at": to_utc_z(self.created_at),
        }
