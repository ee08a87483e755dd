"""
Purchase order coordinator tests.

Verifies:
- PO creation writes header and lines together or not at all
- Receiving moves received_qty and stock together, line by line, all-or-nothing
- Payment status follows paid vs total exactly
- Stock intelligence counts Ordered / Invoiced POs
"""

import re
from decimal import Decimal

import pytest

from kouriten.extensions import db
from kouriten.models import (
    PaymentStatus,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    StockMovement,
)
from kouriten.services import purchasing_service
from kouriten.services.document_service import (
    RandomSuffixPoNumberGenerator,
    TimestampPoNumberGenerator,
    get_po_number_generator,
)
from kouriten.services.status_service import stock_intelligence_for
from kouriten.services.stock_service import current_quantity
from kouriten.validation import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


class FixedNumber:
    def next_number(self) -> str:
        return "PO-FIXED"


def _create(supplier, lines, **kwargs):
    return purchasing_service.create_purchase_order(supplier_id=supplier.id, items=lines, **kwargs)


def _line_ids(po_id):
    return [
        line.id for line in
        db.session.query(PurchaseOrderItem).filter_by(po_id=po_id).order_by(PurchaseOrderItem.id).all()
    ]


# =============================================================================
# CREATION
# =============================================================================


class TestCreatePurchaseOrder:

    def test_creates_header_and_lines(self, supplier, make_item):
        a, b = make_item(), make_item()
        result = _create(supplier, [
            {"inventory_id": a.id, "qty": 10, "cost": "12.50"},
            {"inventory_id": b.id, "qty": 4, "cost": 30},
        ])

        po = db.session.get(PurchaseOrder, result["id"])
        assert po.status == PurchaseOrderStatus.ORDERED
        assert po.payment_status == PaymentStatus.PENDING
        assert po.total_cost == Decimal("245")
        assert result["total_cost"] == 245.0
        assert [line.received_qty for line in po.items] == [0, 0]

    def test_sequence_numbers_are_unique_and_formatted(self, supplier, make_item):
        item = make_item()
        first = _create(supplier, [{"inventory_id": item.id, "qty": 1, "cost": 1}])
        second = _create(supplier, [{"inventory_id": item.id, "qty": 1, "cost": 1}])

        assert re.fullmatch(r"PO-\d{8}-0001", first["po_number"])
        assert re.fullmatch(r"PO-\d{8}-0002", second["po_number"])

    def test_unknown_inventory_rolls_back_everything(self, supplier, make_item):
        item = make_item()
        with pytest.raises(NotFoundError):
            _create(supplier, [
                {"inventory_id": item.id, "qty": 2, "cost": 5},
                {"inventory_id": 9999, "qty": 1, "cost": 5},
            ])

        assert db.session.query(PurchaseOrder).count() == 0
        assert db.session.query(PurchaseOrderItem).count() == 0

    def test_unknown_supplier(self, make_item):
        item = make_item()
        with pytest.raises(NotFoundError):
            purchasing_service.create_purchase_order(
                supplier_id=42, items=[{"inventory_id": item.id, "qty": 1, "cost": 1}]
            )

    def test_duplicate_po_number_is_conflict(self, app, supplier, make_item):
        app.extensions["po_number_generator"] = FixedNumber()
        item = make_item()
        _create(supplier, [{"inventory_id": item.id, "qty": 1, "cost": 1}])

        with pytest.raises(ConflictError):
            _create(supplier, [{"inventory_id": item.id, "qty": 3, "cost": 1}])

        assert db.session.query(PurchaseOrder).count() == 1
        assert db.session.query(PurchaseOrderItem).count() == 1

    @pytest.mark.parametrize("lines", [
        [],
        [{"inventory_id": 1, "qty": 0, "cost": 1}],
        [{"inventory_id": 1, "qty": 2, "cost": -1}],
        [{"qty": 2, "cost": 1}],
    ])
    def test_rejects_bad_lines(self, supplier, lines):
        with pytest.raises(ValidationError):
            _create(supplier, lines)

    def test_paid_amount_sets_payment_status(self, supplier, make_item):
        item = make_item()
        result = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 50}], paid_amount=30)
        assert db.session.get(PurchaseOrder, result["id"]).payment_status == PaymentStatus.PARTIAL


class TestPoNumberStrategies:

    def test_timestamp_strategy(self, app):
        app.config["PO_NUMBER_STRATEGY"] = "timestamp"
        generator = get_po_number_generator()
        assert isinstance(generator, TimestampPoNumberGenerator)
        assert re.fullmatch(r"PO-\d{13}", generator.next_number())

    def test_random_strategy(self, app):
        app.config["PO_NUMBER_STRATEGY"] = "random"
        generator = get_po_number_generator()
        assert isinstance(generator, RandomSuffixPoNumberGenerator)
        assert re.fullmatch(r"PO-\d{6}-\d{4}", generator.next_number())

    def test_unknown_strategy(self, app):
        app.config["PO_NUMBER_STRATEGY"] = "guess"
        with pytest.raises(ValidationError):
            get_po_number_generator()


# =============================================================================
# RECEIVING
# =============================================================================


class TestReceivePurchaseOrder:

    def test_partial_then_full_receipt(self, supplier, make_item):
        item = make_item(stock=2)
        po = _create(supplier, [{"inventory_id": item.id, "qty": 10, "cost": 5}])
        (line_id,) = _line_ids(po["id"])

        result = purchasing_service.receive_purchase_order(
            po["id"], [{"po_item_id": line_id, "inventory_id": item.id, "qty_received": 4}]
        )
        assert result["status"] == "Ordered"
        assert result["items"][0]["received_qty"] == 4
        assert current_quantity(item.id) == 6

        result = purchasing_service.receive_purchase_order(
            po["id"], [{"po_item_id": line_id, "qty_received": 6}]
        )
        assert result["status"] == "Received"
        assert current_quantity(item.id) == 12

        movements = db.session.query(StockMovement).filter_by(inventory_id=item.id).order_by(StockMovement.id).all()
        assert [m.quantity_delta for m in movements] == [4, 6]
        assert {m.reference for m in movements} == {po["po_number"]}

    def test_failure_on_second_of_three_lines_changes_nothing(self, supplier, make_item):
        a, b, c = make_item(stock=1), make_item(stock=1), make_item(stock=1)
        po = _create(supplier, [
            {"inventory_id": a.id, "qty": 5, "cost": 1},
            {"inventory_id": b.id, "qty": 5, "cost": 1},
            {"inventory_id": c.id, "qty": 5, "cost": 1},
        ])
        line_a, line_b, line_c = _line_ids(po["id"])

        with pytest.raises(BusinessRuleError):
            purchasing_service.receive_purchase_order(po["id"], [
                {"po_item_id": line_a, "qty_received": 5},
                {"po_item_id": line_b, "qty_received": 6},
                {"po_item_id": line_c, "qty_received": 5},
            ])

        assert [current_quantity(i.id) for i in (a, b, c)] == [1, 1, 1]
        assert all(
            line.received_qty == 0
            for line in db.session.query(PurchaseOrderItem).filter_by(po_id=po["id"])
        )
        assert db.session.query(StockMovement).count() == 0

    def test_over_receive_allowed_by_policy(self, app, supplier, make_item):
        app.config["ALLOW_OVER_RECEIVE"] = True
        item = make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 1}])
        (line_id,) = _line_ids(po["id"])

        result = purchasing_service.receive_purchase_order(po["id"], [{"po_item_id": line_id, "qty_received": 3}])

        assert result["items"][0]["received_qty"] == 3
        assert current_quantity(item.id) == 3

    def test_line_must_belong_to_po(self, supplier, make_item):
        item = make_item()
        first = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 1}])
        second = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 1}])
        (other_line,) = _line_ids(second["id"])

        with pytest.raises(NotFoundError):
            purchasing_service.receive_purchase_order(first["id"], [{"po_item_id": other_line, "qty_received": 1}])

    def test_mismatched_inventory_rejected(self, supplier, make_item):
        item, other = make_item(), make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 1}])
        (line_id,) = _line_ids(po["id"])

        with pytest.raises(ValidationError):
            purchasing_service.receive_purchase_order(
                po["id"], [{"po_item_id": line_id, "inventory_id": other.id, "qty_received": 1}]
            )

    def test_cancelled_po_cannot_be_received(self, supplier, make_item):
        item = make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 1}])
        (line_id,) = _line_ids(po["id"])
        purchasing_service.update_purchase_order_status(po["id"], "Cancelled")

        with pytest.raises(BusinessRuleError):
            purchasing_service.receive_purchase_order(po["id"], [{"po_item_id": line_id, "qty_received": 1}])
        assert current_quantity(item.id) == 0


# =============================================================================
# PAYMENT, STATUS, ALLOCATIONS
# =============================================================================


class TestPoPayments:

    def _po(self, supplier, make_item):
        item = make_item()
        return _create(supplier, [{"inventory_id": item.id, "qty": 1, "cost": 100}])

    def test_just_short_of_total_is_partial(self, supplier, make_item):
        po = self._po(supplier, make_item)
        purchasing_service.record_po_payment(po["id"], amount_paid=40)
        result = purchasing_service.record_po_payment(po["id"], amount_paid=59.999)
        assert result["payment_status"] == "Partial"

    def test_exact_total_is_fully_paid(self, supplier, make_item):
        po = self._po(supplier, make_item)
        purchasing_service.record_po_payment(po["id"], amount_paid=40)
        result = purchasing_service.record_po_payment(po["id"], amount_paid=60)
        assert result["payment_status"] == "Fully Paid"
        assert result["paid_amount"] == 100.0

    def test_raised_invoice_total_moves_back_to_partial(self, supplier, make_item):
        po = self._po(supplier, make_item)
        purchasing_service.record_po_payment(po["id"], amount_paid=100)
        result = purchasing_service.record_po_payment(
            po["id"], final_total_cost=120, invoice_no="INV-77", payment_date="2026-03-01"
        )
        assert result["payment_status"] == "Partial"
        assert result["total_cost"] == 120.0
        assert result["invoice_no"] == "INV-77"
        assert result["payment_date"] == "2026-03-01"

    def test_negative_payment_rejected(self, supplier, make_item):
        po = self._po(supplier, make_item)
        with pytest.raises(ValidationError):
            purchasing_service.record_po_payment(po["id"], amount_paid=-5)


class TestStatusAndAllocations:

    def test_illegal_transition_rejected(self, supplier, make_item):
        item = make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 1, "cost": 1}])
        purchasing_service.update_purchase_order_status(po["id"], "Received")

        with pytest.raises(BusinessRuleError):
            purchasing_service.update_purchase_order_status(po["id"], "Ordered")

    def test_unknown_status_rejected(self, supplier, make_item):
        item = make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 1, "cost": 1}])
        with pytest.raises(ValidationError):
            purchasing_service.update_purchase_order_status(po["id"], "Shipped")

    def test_stock_intelligence_tracks_po_status(self, supplier, make_item):
        item = make_item()
        first = _create(supplier, [{"inventory_id": item.id, "qty": 6, "cost": 1}])
        second = _create(supplier, [{"inventory_id": item.id, "qty": 4, "cost": 1}])

        assert stock_intelligence_for(item.id) == {"qty_ordered": 10, "qty_allocated": 0, "active_po_count": 2}

        (line_id,) = _line_ids(second["id"])
        purchasing_service.set_allocations(second["id"], [{"po_item_id": line_id, "allocated_qty": 3}])
        purchasing_service.update_purchase_order_status(second["id"], "Invoiced")

        assert stock_intelligence_for(item.id) == {"qty_ordered": 6, "qty_allocated": 3, "active_po_count": 2}

        purchasing_service.update_purchase_order_status(first["id"], "Cancelled")
        assert stock_intelligence_for(item.id)["active_po_count"] == 1

    def test_allocation_bounded_by_ordered_qty(self, supplier, make_item):
        item = make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 2, "cost": 1}])
        (line_id,) = _line_ids(po["id"])
        with pytest.raises(ValidationError):
            purchasing_service.set_allocations(po["id"], [{"po_item_id": line_id, "allocated_qty": 3}])


class TestPurchaseOrderQueries:

    def test_list_with_search_and_original_value(self, supplier, make_item):
        item = make_item()
        po = _create(supplier, [{"inventory_id": item.id, "qty": 3, "cost": "2.50"}])
        purchasing_service.record_po_payment(po["id"], final_total_cost=9, invoice_no="INV-55")

        rows = purchasing_service.list_purchase_orders(search="INV-55")
        assert len(rows) == 1
        assert rows[0]["supplier_name"] == "Bandai Distribution"
        assert rows[0]["original_value"] == 7.5
        assert rows[0]["total_cost"] == 9.0

        assert purchasing_service.list_purchase_orders(search="nothing-matches") == []
        assert len(purchasing_service.list_purchase_orders(status="Ordered")) == 1

    def test_get_includes_lines(self, supplier, make_item):
        item = make_item(card_name="Romance Dawn Box")
        po = _create(supplier, [{"inventory_id": item.id, "qty": 3, "cost": 1}])

        data = purchasing_service.get_purchase_order(po["id"])
        assert data["items"][0]["card_name"] == "Romance Dawn Box"
        assert data["items"][0]["outstanding_qty"] == 3

    def test_get_unknown(self, app):
        with pytest.raises(NotFoundError):
            purchasing_service.get_purchase_order(123)
