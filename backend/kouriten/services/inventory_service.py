# Overview: Inventory catalogue maintenance and stock listings.

"""
Inventory Service

stock_quantity is never assigned here. Initial stock on create and manual
edits on update are routed through stock_service so every change leaves a
StockMovement, and the field edits and the stock change share one
unit_of_work.
"""

from __future__ import annotations

from ..extensions import db
from ..models import (
    Category,
    CustomerOrderItem,
    InventoryItem,
    PurchaseOrderItem,
    StockMovementReason,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
    enforce_rules_inventory,
    parse_int,
    validate_payload,
)
from .status_service import stock_intelligence_query
from .stock_service import adjust_stock, set_stock_level
from .transactions import unit_of_work

INVENTORY_MUTABLE_FIELDS = {
    "barcode",
    "game_title",
    "category_id",
    "card_id",
    "card_name",
    "set_name",
    "price",
    "cost_price",
    "packs_per_box",
    "boxes_per_case",
}

INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields=INVENTORY_MUTABLE_FIELDS,
    required_on_create={"card_name"},
)


def _parse_stock_field(payload: dict) -> int | None:
    raw = payload.get("stock_quantity")
    if raw in (None, ""):
        return None
    return parse_int(raw, "stock_quantity")


def _check_references(session, patch: dict, *, item_id: int | None = None) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and session.get(Category, category_id) is None:
        raise NotFoundError(f"Category {category_id} not found")

    barcode = patch.get("barcode")
    if barcode:
        query = session.query(InventoryItem.id).filter(InventoryItem.barcode == barcode)
        if item_id is not None:
            query = query.filter(InventoryItem.id != item_id)
        if query.first():
            raise ConflictError(f"Barcode '{barcode}' is already assigned to another item")


def list_inventory() -> list[dict]:
    """Shop-front listing: items with non-negative stock, grouped by category."""
    rows = (
        db.session.query(InventoryItem)
        .outerjoin(Category, Category.id == InventoryItem.category_id)
        .filter(InventoryItem.stock_quantity >= 0)
        .order_by(Category.name.asc(), InventoryItem.card_name.asc(), InventoryItem.id.asc())
        .all()
    )
    return [row.to_dict() for row in rows]


def inventory_status() -> list[dict]:
    """Back-office listing with on-order figures for every item."""
    rows = (
        stock_intelligence_query()
        .order_by(InventoryItem.card_name.asc(), InventoryItem.id.asc())
        .all()
    )
    results = []
    for item, ordered, allocated, active in rows:
        data = item.to_dict()
        data["qty_ordered"] = int(ordered or 0)
        data["qty_allocated"] = int(allocated or 0)
        data["active_po_count"] = int(active or 0)
        results.append(data)
    return results


def get_inventory_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError(f"Inventory item {item_id} not found")
    return item


def add_inventory(payload: dict) -> dict:
    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=False)
    enforce_rules_inventory(patch)
    initial_stock = _parse_stock_field(payload or {}) or 0
    if initial_stock < 0:
        raise ValidationError("stock_quantity must be >= 0")

    with unit_of_work("inventory.add") as session:
        _check_references(session, patch)
        item = InventoryItem(stock_quantity=0, **patch)
        session.add(item)
        session.flush()
        if initial_stock:
            adjust_stock(item.id, initial_stock, reason=StockMovementReason.INITIAL, reference="INITIAL")
        result = {"id": item.id, "stock_quantity": initial_stock}

    return result


def update_inventory(item_id: int, payload: dict) -> dict:
    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=True)
    enforce_rules_inventory(patch)
    target_stock = _parse_stock_field(payload or {})

    with unit_of_work("inventory.update") as session:
        item = session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")
        _check_references(session, patch, item_id=item_id)

        for key, value in patch.items():
            setattr(item, key, value)
        session.flush()

        if target_stock is not None:
            set_stock_level(item_id, target_stock, reference="MANUAL-EDIT")

        result = item.to_dict()

    return result


def delete_inventory(item_id: int) -> None:
    with unit_of_work("inventory.delete") as session:
        item = session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")

        po_lines = (
            session.query(db.func.count(PurchaseOrderItem.id))
            .filter(PurchaseOrderItem.inventory_id == item_id)
            .scalar()
        )
        order_lines = (
            session.query(db.func.count(CustomerOrderItem.id))
            .filter(CustomerOrderItem.inventory_id == item_id)
            .scalar()
        )
        if po_lines or order_lines:
            raise ReferentialIntegrityError(
                "Cannot delete inventory item: purchase orders or sales reference it",
                details={"po_items": po_lines, "order_items": order_lines},
            )
        session.delete(item)
