# Overview: Pack storage ledger; balance and transaction log written together.

"""
Pack ledger invariants (authoritative)

- pack_storage.quantity == SUM(pack_transactions.amount) for the same
  (customer_id, game_title, pack_type) key. Both rows are written in one
  unit_of_work or neither is.
- Balances move by relative UPDATE only; a redemption is conditional on
  the balance staying >= 0.
- Packs tied to an event are only credited to customers registered for it.
"""

from __future__ import annotations

from sqlalchemy import or_, update

from ..extensions import db
from ..models import Customer, Event, EventRegistration, PackBalance, PackTransaction
from ..validation import (
    BusinessRuleError,
    NotFoundError,
    ValidationError,
    parse_int,
)
from .transactions import unit_of_work


def _clean_key_part(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if len(text) > 128:
        raise ValidationError(f"{field} exceeds max length 128")
    return text


def _balance_query(customer_id: int, game_title: str, pack_type: str):
    return db.session.query(PackBalance).filter(
        PackBalance.customer_id == customer_id,
        PackBalance.game_title == game_title,
        PackBalance.pack_type == pack_type,
    )


def apply_pack_change(
    customer_id,
    game_title,
    pack_type,
    change_amount,
    event_id=None,
    note: str | None = None,
) -> int:
    """
    Credit or redeem packs for a customer. Returns the new balance.

    A positive change linked to an event requires an existing registration
    for that event; without one nothing is written.
    """
    customer_id = parse_int(customer_id, "customer_id")
    change = parse_int(change_amount, "change_amount")
    if change == 0:
        raise ValidationError("change_amount must be non-zero")
    game_title = _clean_key_part(game_title, "game_title")
    pack_type = _clean_key_part(pack_type, "pack_type")
    if event_id in (None, ""):
        event_id = None
    else:
        event_id = parse_int(event_id, "event_id")
    if note is not None:
        note = str(note).strip()[:255] or None

    with unit_of_work("packs.apply_change") as session:
        if session.get(Customer, customer_id) is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        if event_id is not None:
            if session.get(Event, event_id) is None:
                raise NotFoundError(f"Event {event_id} not found")
            if change > 0:
                registered = (
                    session.query(EventRegistration.id)
                    .filter(
                        EventRegistration.event_id == event_id,
                        EventRegistration.customer_id == customer_id,
                    )
                    .first()
                )
                if registered is None:
                    raise BusinessRuleError(
                        "Customer is not registered for this event",
                        details={"customer_id": customer_id, "event_id": event_id},
                    )

        stmt = (
            update(PackBalance)
            .where(
                PackBalance.customer_id == customer_id,
                PackBalance.game_title == game_title,
                PackBalance.pack_type == pack_type,
            )
            .values(quantity=PackBalance.quantity + change)
        )
        if change < 0:
            stmt = stmt.where(PackBalance.quantity + change >= 0)
        result = session.execute(stmt.execution_options(synchronize_session=False))

        if not result.rowcount:
            existing = _balance_query(customer_id, game_title, pack_type).first()
            if change < 0:
                raise BusinessRuleError(
                    "Insufficient packs",
                    details={
                        "customer_id": customer_id,
                        "game_title": game_title,
                        "pack_type": pack_type,
                        "on_hand": existing.quantity if existing else 0,
                        "requested": -change,
                    },
                )
            # First credit for this key; a concurrent insert trips the unique key
            session.add(PackBalance(
                customer_id=customer_id,
                game_title=game_title,
                pack_type=pack_type,
                quantity=change,
            ))

        session.add(PackTransaction(
            customer_id=customer_id,
            game_title=game_title,
            pack_type=pack_type,
            amount=change,
            event_id=event_id,
            note=note,
        ))
        session.flush()

        balance = (
            session.query(PackBalance.quantity)
            .filter(
                PackBalance.customer_id == customer_id,
                PackBalance.game_title == game_title,
                PackBalance.pack_type == pack_type,
            )
            .scalar()
        )

    return int(balance)


def list_balances(search: str | None = None) -> list[dict]:
    query = db.session.query(PackBalance).join(Customer, Customer.id == PackBalance.customer_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.mobile_number.ilike(pattern),
            PackBalance.game_title.ilike(pattern),
        ))
    rows = (
        query.order_by(
            (PackBalance.quantity == 0).asc(),
            Customer.name.asc(),
            PackBalance.game_title.asc(),
            PackBalance.pack_type.asc(),
        )
        .all()
    )
    return [row.to_dict() for row in rows]


def history(customer_id: int) -> list[dict]:
    if db.session.get(Customer, customer_id) is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    rows = (
        db.session.query(PackTransaction)
        .filter(PackTransaction.customer_id == customer_id)
        .order_by(PackTransaction.created_at.desc(), PackTransaction.id.desc())
        .all()
    )
    return [row.to_dict() for row in rows]
