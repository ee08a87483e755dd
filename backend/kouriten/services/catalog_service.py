# Overview: Categories and suppliers; simple lookups with guarded deletes.

"""
Catalog Service

Categories and suppliers are referenced by inventory and purchase orders
respectively. Deleting one that is still referenced is refused up front
with ReferentialIntegrityError; the foreign keys enforce the same rule at
the datastore for any path that skips the check.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Category, InventoryItem, PurchaseOrder, Supplier
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ReferentialIntegrityError,
    validate_payload,
)
from .transactions import unit_of_work

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact_person", "email", "phone", "payment_terms"},
    required_on_create={"name"},
)


def list_categories() -> list[dict]:
    rows = db.session.query(Category).order_by(Category.name.asc()).all()
    return [row.to_dict() for row in rows]


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    with unit_of_work("category.create") as session:
        if session.query(Category.id).filter(Category.name == patch["name"]).first():
            raise ConflictError(f"Category '{patch['name']}' already exists")
        category = Category(**patch)
        session.add(category)
        session.flush()
    return category


def delete_category(category_id: int) -> None:
    with unit_of_work("category.delete") as session:
        category = session.get(Category, category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        in_use = (
            session.query(db.func.count(InventoryItem.id))
            .filter(InventoryItem.category_id == category_id)
            .scalar()
        )
        if in_use:
            raise ReferentialIntegrityError(
                "Cannot delete category: inventory items still use it",
                details={"inventory_items": in_use},
            )
        session.delete(category)


def list_suppliers() -> list[dict]:
    rows = db.session.query(Supplier).order_by(Supplier.name.asc()).all()
    return [row.to_dict() for row in rows]


def create_supplier(payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    with unit_of_work("supplier.create") as session:
        if session.query(Supplier.id).filter(Supplier.name == patch["name"]).first():
            raise ConflictError(f"Supplier '{patch['name']}' already exists")
        supplier = Supplier(**patch)
        session.add(supplier)
        session.flush()
    return supplier


def delete_supplier(supplier_id: int) -> None:
    with unit_of_work("supplier.delete") as session:
        supplier = session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError(f"Supplier {supplier_id} not found")
        in_use = (
            session.query(db.func.count(PurchaseOrder.id))
            .filter(PurchaseOrder.supplier_id == supplier_id)
            .scalar()
        )
        if in_use:
            raise ReferentialIntegrityError(
                "Cannot delete supplier: purchase orders still reference it",
                details={"purchase_orders": in_use},
            )
        session.delete(supplier)
