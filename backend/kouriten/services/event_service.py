# Overview: Tournament events and customer registrations.

"""
Event Service

Registrations gate pack credits: pack_ledger_service only credits event
packs to customers holding a registration row created here.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Event, EventRegistration
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    parse_int,
    validate_payload,
)
from ..time_utils import utcnow
from .transactions import unit_of_work

EVENT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "game_title", "event_date", "entry_fee"},
    required_on_create={"name", "event_date"},
)


def get_event(event_id: int) -> Event:
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFoundError(f"Event {event_id} not found")
    return event


def list_events(*, upcoming: bool = False) -> list[dict]:
    query = db.session.query(Event)
    if upcoming:
        query = query.filter(Event.event_date >= utcnow())
    rows = query.order_by(Event.event_date.asc(), Event.id.asc()).all()
    results = []
    for event in rows:
        data = event.to_dict()
        data["registration_count"] = len(event.registrations)
        results.append(data)
    return results


def create_event(payload: dict) -> Event:
    patch = validate_payload(model=Event, payload=payload, policy=EVENT_POLICY, partial=False)
    if patch.get("entry_fee") is not None and patch["entry_fee"] < 0:
        raise ValidationError("entry_fee must be >= 0")
    with unit_of_work("event.create") as session:
        event = Event(**patch)
        session.add(event)
        session.flush()
    return event


def register_customer(event_id: int, customer_id) -> EventRegistration:
    customer_id = parse_int(customer_id, "customer_id")
    with unit_of_work("event.register") as session:
        if session.get(Event, event_id) is None:
            raise NotFoundError(f"Event {event_id} not found")
        if session.get(Customer, customer_id) is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        existing = (
            session.query(EventRegistration.id)
            .filter(
                EventRegistration.event_id == event_id,
                EventRegistration.customer_id == customer_id,
            )
            .first()
        )
        if existing:
            raise ConflictError("Customer is already registered for this event")
        registration = EventRegistration(event_id=event_id, customer_id=customer_id)
        session.add(registration)
        session.flush()
    return registration


def list_registrations(event_id: int) -> list[dict]:
    get_event(event_id)
    rows = (
        db.session.query(EventRegistration)
        .filter(EventRegistration.event_id == event_id)
        .order_by(EventRegistration.registered_at.asc(), EventRegistration.id.asc())
        .all()
    )
    return [row.to_dict() for row in rows]
