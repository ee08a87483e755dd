# Overview: Customer records, lookup and purchase/event history.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..time_utils import to_utc_z
from ..models import (
    Customer,
    CustomerOrder,
    Event,
    EventRegistration,
    PackBalance,
    PackTransaction,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ReferentialIntegrityError,
    clamp_limit,
    validate_payload,
)
from .transactions import unit_of_work

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "mobile_number", "bandai_id", "bushiroad_id", "status", "loyalty_points"},
    required_on_create={"name"},
)


def _search_filter(term: str):
    pattern = f"%{term.strip()}%"
    return or_(
        Customer.name.ilike(pattern),
        Customer.email.ilike(pattern),
        Customer.mobile_number.ilike(pattern),
        Customer.bandai_id.ilike(pattern),
        Customer.bushiroad_id.ilike(pattern),
    )


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def list_customers(search: str | None = None) -> list[dict]:
    query = db.session.query(Customer)
    if search:
        query = query.filter(_search_filter(search))
    rows = query.order_by(Customer.name.asc(), Customer.id.asc()).all()
    return [row.to_dict() for row in rows]


def search_customers(term: str | None, limit: int | None = 10) -> list[dict]:
    """Type-ahead lookup at the till; empty input returns nothing."""
    if not term or not term.strip():
        return []
    rows = (
        db.session.query(Customer)
        .filter(_search_filter(term))
        .order_by(Customer.name.asc())
        .limit(clamp_limit(limit, default=10, maximum=50))
        .all()
    )
    return [
        {"id": row.id, "name": row.name, "mobile_number": row.mobile_number, "email": row.email}
        for row in rows
    ]


def create_customer(payload: dict) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    with unit_of_work("customer.create") as session:
        email = patch.get("email")
        if email and session.query(Customer.id).filter(Customer.email == email).first():
            raise ConflictError(f"A customer with email '{email}' already exists")
        customer = Customer(**patch)
        session.add(customer)
        session.flush()
    return customer


def delete_customer(customer_id: int) -> None:
    """Refused while any order, pack balance, pack entry or registration points at the customer."""
    with unit_of_work("customer.delete") as session:
        customer = session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        references = {}
        for label, column in (
            ("orders", CustomerOrder.customer_id),
            ("pack_balances", PackBalance.customer_id),
            ("pack_transactions", PackTransaction.customer_id),
            ("event_registrations", EventRegistration.customer_id),
        ):
            count = session.query(db.func.count()).filter(column == customer_id).scalar()
            if count:
                references[label] = count
        if references:
            raise ReferentialIntegrityError(
                "Cannot delete customer with existing history",
                details=references,
            )
        session.delete(customer)


def history(customer_id: int) -> list[dict]:
    """Every order for the customer, newest first, with a one-line item summary."""
    get_customer(customer_id)
    orders = (
        db.session.query(CustomerOrder)
        .filter(CustomerOrder.customer_id == customer_id)
        .order_by(CustomerOrder.order_date.desc(), CustomerOrder.id.desc())
        .all()
    )
    results = []
    for order in orders:
        data = order.to_dict()
        data["items_summary"] = order.items_summary
        results.append(data)
    return results


def recent_events(customer_id: int, limit: int | None = 5) -> list[dict]:
    get_customer(customer_id)
    rows = (
        db.session.query(Event, EventRegistration.registered_at)
        .join(EventRegistration, EventRegistration.event_id == Event.id)
        .filter(EventRegistration.customer_id == customer_id)
        .order_by(Event.event_date.desc(), Event.id.desc())
        .limit(clamp_limit(limit, default=5, maximum=50))
        .all()
    )
    results = []
    for event, registered_at in rows:
        data = event.to_dict()
        data["registered_at"] = to_utc_z(registered_at)
        results.append(data)
    return results
