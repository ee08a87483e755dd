"""
Reference data tests: categories, suppliers, inventory, customers, events.

Verifies:
- Deletes of referenced rows are refused with ReferentialIntegrityError
- Duplicate names / emails / registrations conflict
- Inventory edits route stock through the movement log
"""

import pytest

from kouriten.extensions import db
from kouriten.models import Category, Customer, InventoryItem, StockMovement, StockMovementReason, Supplier
from kouriten.services import (
    catalog_service,
    customer_service,
    event_service,
    inventory_service,
    pack_ledger_service,
    purchasing_service,
    sales_service,
)
from kouriten.validation import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)


# =============================================================================
# CATEGORIES & SUPPLIERS
# =============================================================================


class TestCatalog:

    def test_create_and_list_categories(self, app):
        catalog_service.create_category({"name": "Starter Deck"})
        catalog_service.create_category({"name": "Booster Box"})
        assert [c["name"] for c in catalog_service.list_categories()] == ["Booster Box", "Starter Deck"]

    def test_duplicate_category(self, category):
        with pytest.raises(ConflictError):
            catalog_service.create_category({"name": "Booster Box"})

    def test_category_requires_name(self, app):
        with pytest.raises(ValidationError):
            catalog_service.create_category({"name": ""})

    def test_delete_referenced_category(self, category, make_item):
        make_item()
        with pytest.raises(ReferentialIntegrityError) as exc:
            catalog_service.delete_category(category.id)
        assert exc.value.details == {"inventory_items": 1}
        assert db.session.get(Category, category.id) is not None

    def test_delete_unused_category(self, category):
        catalog_service.delete_category(category.id)
        assert db.session.query(Category).count() == 0

    def test_delete_unknown_category(self, app):
        with pytest.raises(NotFoundError):
            catalog_service.delete_category(42)

    def test_supplier_lifecycle(self, app):
        supplier = catalog_service.create_supplier({"name": "Bushiroad SEA", "payment_terms": "Net 14"})
        assert supplier.payment_terms == "Net 14"
        with pytest.raises(ConflictError):
            catalog_service.create_supplier({"name": "Bushiroad SEA"})
        catalog_service.delete_supplier(supplier.id)
        assert db.session.query(Supplier).count() == 0

    def test_delete_supplier_with_purchase_orders(self, supplier, make_item):
        item = make_item()
        purchasing_service.create_purchase_order(
            supplier_id=supplier.id, items=[{"inventory_id": item.id, "qty": 1, "cost": 1}]
        )
        with pytest.raises(ReferentialIntegrityError) as exc:
            catalog_service.delete_supplier(supplier.id)
        assert exc.value.details == {"purchase_orders": 1}


# =============================================================================
# INVENTORY
# =============================================================================


class TestInventory:

    def test_add_with_initial_stock(self, category):
        created = inventory_service.add_inventory({
            "card_name": "OP-07 Booster Box",
            "category_id": category.id,
            "price": "150",
            "stock_quantity": 6,
            "unknown_field": "ignored",
        })
        assert created["stock_quantity"] == 6

        movement = db.session.query(StockMovement).one()
        assert movement.reason == StockMovementReason.INITIAL
        assert movement.quantity_delta == 6

    def test_add_without_stock_logs_nothing(self, category):
        inventory_service.add_inventory({"card_name": "Sleeves", "category_id": category.id})
        assert db.session.query(StockMovement).count() == 0

    @pytest.mark.parametrize("payload", [
        {"price": 1},
        {"card_name": "Box", "price": -1},
        {"card_name": "Box", "packs_per_box": 0},
        {"card_name": "Box", "stock_quantity": -2},
        {"card_name": "Box", "stock_quantity": "2.5"},
    ])
    def test_add_rejects_bad_payload(self, category, payload):
        with pytest.raises(ValidationError):
            inventory_service.add_inventory(payload)

    def test_add_unknown_category(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.add_inventory({"card_name": "Box", "category_id": 9})

    def test_duplicate_barcode(self, make_item):
        make_item(barcode="4570118000001")
        with pytest.raises(ConflictError):
            inventory_service.add_inventory({"card_name": "Other", "barcode": "4570118000001"})

    def test_update_fields_and_stock(self, make_item):
        item = make_item(stock=10)
        result = inventory_service.update_inventory(item.id, {"price": "139.90", "stock_quantity": 7})

        assert result["price"] == 139.9
        assert result["stock_quantity"] == 7
        movement = db.session.query(StockMovement).one()
        assert movement.quantity_delta == -3
        assert movement.reference == "MANUAL-EDIT"

    def test_update_unknown_item(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.update_inventory(5, {"price": 1})

    def test_listing_hides_negative_stock(self, app, make_item):
        make_item(stock=3, card_name="Visible")
        make_item(stock=-1, card_name="Oversold")
        names = [row["card_name"] for row in inventory_service.list_inventory()]
        assert names == ["Visible"]
        assert len(inventory_service.inventory_status()) == 2

    def test_delete_item_with_sales(self, customer, make_item):
        item = make_item(stock=2)
        sales_service.create_order(
            customer_id=customer.id, order_type="In-Stock", items=[{"id": item.id, "qty": 1, "price": 1}]
        )
        with pytest.raises(ReferentialIntegrityError):
            inventory_service.delete_inventory(item.id)

    def test_delete_unreferenced_item(self, category):
        created = inventory_service.add_inventory({"card_name": "Playmat", "stock_quantity": 2})
        inventory_service.delete_inventory(created["id"])
        assert db.session.get(InventoryItem, created["id"]) is None
        assert db.session.query(StockMovement).count() == 0


# =============================================================================
# CUSTOMERS
# =============================================================================


class TestCustomers:

    def test_create_and_search(self, customer):
        customer_service.create_customer({"name": "Ben Lim", "bandai_id": "BN-0042"})

        assert [c["name"] for c in customer_service.list_customers()] == ["Aiko Tan", "Ben Lim"]
        assert [c["name"] for c in customer_service.search_customers("0042")] == ["Ben Lim"]
        assert [c["name"] for c in customer_service.search_customers("9123")] == ["Aiko Tan"]
        assert customer_service.search_customers("   ") == []

    def test_duplicate_email(self, customer):
        with pytest.raises(ConflictError):
            customer_service.create_customer({"name": "Someone", "email": "aiko@example.com"})

    def test_delete_unreferenced_customer(self, customer):
        customer_service.delete_customer(customer.id)
        assert db.session.query(Customer).count() == 0

    def test_delete_customer_with_history(self, customer, make_item):
        item = make_item()
        sales_service.create_order(
            customer_id=customer.id, order_type="Preorder", items=[{"id": item.id, "qty": 1, "price": 1}]
        )
        pack_ledger_service.apply_pack_change(customer.id, "One Piece", "OP-07", 2)

        with pytest.raises(ReferentialIntegrityError) as exc:
            customer_service.delete_customer(customer.id)
        assert exc.value.details == {"orders": 1, "pack_balances": 1, "pack_transactions": 1}

    def test_history_and_recent_events(self, customer, make_item, make_event, register):
        item = make_item(card_name="OP-08 Booster Box")
        sales_service.create_order(
            customer_id=customer.id, order_type="Preorder", items=[{"id": item.id, "qty": 2, "price": 1}]
        )
        near = make_event("Weekly", days_ahead=1)
        far = make_event("Regional", days_ahead=30)
        register(near.id, customer.id)
        register(far.id, customer.id)

        orders = customer_service.history(customer.id)
        assert orders[0]["items_summary"] == "OP-08 Booster Box (x2)"

        events = customer_service.recent_events(customer.id)
        assert [e["name"] for e in events] == ["Regional", "Weekly"]
        assert events[0]["registered_at"].endswith("Z")

    def test_unknown_customer_history(self, app):
        with pytest.raises(NotFoundError):
            customer_service.history(31)


# =============================================================================
# EVENTS
# =============================================================================


class TestEvents:

    def test_create_event(self, app):
        event = event_service.create_event({
            "name": "Store Championship",
            "game_title": "One Piece",
            "event_date": "2030-03-01T10:00:00Z",
            "entry_fee": "12.50",
        })
        assert event.to_dict()["event_date"] == "2030-03-01T10:00:00Z"

    @pytest.mark.parametrize("payload", [
        {"name": "No date"},
        {"name": "Bad date", "event_date": "next week"},
        {"name": "Negative", "event_date": "2030-03-01", "entry_fee": -1},
    ])
    def test_rejects_bad_events(self, app, payload):
        with pytest.raises(ValidationError):
            event_service.create_event(payload)

    def test_upcoming_filter(self, make_event):
        make_event("Past", days_ahead=-3)
        make_event("Soon", days_ahead=2)
        assert [e["name"] for e in event_service.list_events(upcoming=True)] == ["Soon"]
        assert len(event_service.list_events()) == 2

    def test_register_twice(self, customer, make_event):
        event = make_event()
        event_service.register_customer(event.id, customer.id)
        with pytest.raises(ConflictError):
            event_service.register_customer(event.id, customer.id)

        rows = event_service.list_registrations(event.id)
        assert [r["customer_name"] for r in rows] == ["Aiko Tan"]
        assert event_service.list_events()[0]["registration_count"] == 1

    def test_register_unknown_customer(self, make_event):
        event = make_event()
        with pytest.raises(NotFoundError):
            event_service.register_customer(event.id, 404)
