from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .money import money_column, money_json


class Customer(db.Model):
    """
    Shop customer, including the player IDs used for official events.

    Customers are referenced (never owned) by orders, pack balances and event
    registrations, so a customer with history cannot be deleted.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True)
    mobile_number = db.Column(db.String(32), nullable=True)
    bandai_id = db.Column(db.String(64), nullable=True)
    bushiroad_id = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Active")
    loyalty_points = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "mobile_number": self.mobile_number,
            "bandai_id": self.bandai_id,
            "bushiroad_id": self.bushiroad_id,
            "status": self.status,
            "loyalty_points": self.loyalty_points,
            "created_at": to_utc_z(self.created_at),
        }


class Event(db.Model):
    __tablename__ = "events"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    game_title = db.Column(db.String(128), nullable=True)
    event_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    entry_fee = money_column()
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "game_title": self.game_title,
            "event_date": to_utc_z(self.event_date),
            "entry_fee": money_json(self.entry_fee),
            "created_at": to_utc_z(self.created_at),
        }


class EventRegistration(db.Model):
    __tablename__ = "event_registrations"
    __table_args__ = (
        db.UniqueConstraint("event_id", "customer_id", name="uq_event_registrations_event_customer"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    registered_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    event = db.relationship("Event", backref=db.backref("registrations", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("registrations", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "registered_at": to_utc_z(self.registered_at),
        }


class PackBalance(db.Model):
    """
    Packs a customer holds in store storage for one (game, pack type).

    Materialized view of pack_transactions: quantity always equals the sum of
    the logged amounts for the same key, both written in one unit of work.
    """
    __tablename__ = "pack_storage"
    __table_args__ = (
        db.UniqueConstraint("customer_id", "game_title", "pack_type", name="uq_pack_storage_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    game_title = db.Column(db.String(128), nullable=False)
    pack_type = db.Column(db.String(128), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer", backref=db.backref("pack_balances", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "game_title": self.game_title,
            "pack_type": self.pack_type,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
        }


class PackTransaction(db.Model):
    """Append-only pack ledger entry; never updated or deleted."""
    __tablename__ = "pack_transactions"
    __table_args__ = (
        db.Index("ix_pack_transactions_key", "customer_id", "game_title", "pack_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    game_title = db.Column(db.String(128), nullable=False)
    pack_type = db.Column(db.String(128), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=True, index=True)
    note = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    event = db.relationship("Event")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "game_title": self.game_title,
            "pack_type": self.pack_type,
            "amount": self.amount,
            "event_id": self.event_id,
            "event_name": self.event.name if self.event else None,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
