"""
Sale / preorder coordinator tests.

Verifies:
- In-Stock sales decrement stock in the same unit as the order
- Preorders never move stock
- Totals are computed server-side
- Payments move status forward only
- Payment method is stored as entered at the till
"""

from decimal import Decimal

import pytest

from kouriten.extensions import db
from kouriten.models import CustomerOrder, CustomerOrderItem, OrderStatus, StockMovement
from kouriten.services import sales_service
from kouriten.services.stock_service import current_quantity
from kouriten.validation import BusinessRuleError, NotFoundError, ValidationError


class TestCreateOrder:

    def test_in_stock_sale_decrements_stock(self, customer, make_item):
        item = make_item(stock=5)
        result = sales_service.create_order(
            customer_id=customer.id,
            order_type="In-Stock",
            payment_method="Cash",
            items=[{"id": item.id, "qty": 2, "price": "150.00"}],
        )

        assert current_quantity(item.id) == 3
        assert result["total_amount"] == 300.0
        assert result["status"] == "Paid"

        movement = db.session.query(StockMovement).one()
        assert movement.quantity_delta == -2
        assert movement.reference == f"ORDER-{result['id']}"

    def test_preorder_leaves_stock_alone(self, customer, make_item):
        item = make_item(stock=0)
        result = sales_service.create_order(
            customer_id=customer.id,
            order_type="Preorder",
            items=[{"id": item.id, "qty": 3, "price": 20}],
            deposit_amount=15,
        )

        assert current_quantity(item.id) == 0
        assert db.session.query(StockMovement).count() == 0
        assert result["status"] == "Partial"
        assert result["deposit_amount"] == 15.0

    def test_preorder_without_deposit_is_pending(self, customer, make_item):
        item = make_item()
        result = sales_service.create_order(
            customer_id=customer.id,
            order_type="PREORDER",
            items=[{"id": item.id, "qty": 1, "price": 20}],
        )
        assert result["status"] == "Pending"

    def test_client_total_is_ignored(self, customer, make_item):
        item = make_item(stock=10)
        result = sales_service.create_order(
            customer_id=customer.id,
            order_type="In-Stock",
            items=[
                {"id": item.id, "qty": 3, "price": "4.50", "total": 1},
                {"id": item.id, "qty": 1, "price": "0.50"},
            ],
        )
        order = db.session.get(CustomerOrder, result["id"])
        assert order.total_amount == Decimal("14")
        assert [line.unit_price for line in order.items] == [Decimal("4.5"), Decimal("0.5")]

    def test_insufficient_stock_rolls_back_whole_order(self, customer, make_item):
        plenty, scarce = make_item(stock=10), make_item(stock=1)
        with pytest.raises(BusinessRuleError):
            sales_service.create_order(
                customer_id=customer.id,
                order_type="In-Stock",
                items=[
                    {"id": plenty.id, "qty": 2, "price": 1},
                    {"id": scarce.id, "qty": 2, "price": 1},
                ],
            )

        assert current_quantity(plenty.id) == 10
        assert db.session.query(CustomerOrder).count() == 0
        assert db.session.query(CustomerOrderItem).count() == 0

    def test_unknown_customer(self, make_item):
        item = make_item(stock=1)
        with pytest.raises(NotFoundError):
            sales_service.create_order(
                customer_id=77, order_type="In-Stock", items=[{"id": item.id, "qty": 1, "price": 1}]
            )
        assert current_quantity(item.id) == 1

    @pytest.mark.parametrize("entered,stored", [
        ("Cash + PayNow", "Cash + PayNow"),
        ("  GrabPay ", "GrabPay"),
        ("   ", None),
    ])
    def test_payment_method_is_free_text(self, customer, make_item, entered, stored):
        item = make_item(stock=1)
        result = sales_service.create_order(
            customer_id=customer.id,
            order_type="In-Stock",
            payment_method=entered,
            items=[{"id": item.id, "qty": 1, "price": 5}],
        )
        assert db.session.get(CustomerOrder, result["id"]).payment_method == stored

    @pytest.mark.parametrize("order_type,items,method", [
        ("Layaway", [{"id": 1, "qty": 1, "price": 1}], None),
        ("In-Stock", [], None),
        ("In-Stock", [{"id": 1, "qty": -1, "price": 1}], None),
        ("In-Stock", [{"id": 1, "qty": 1}], None),
        ("In-Stock", [{"id": 1, "qty": 1, "price": 1}], "x" * 33),
    ])
    def test_rejects_bad_input(self, customer, order_type, items, method):
        with pytest.raises(ValidationError):
            sales_service.create_order(
                customer_id=customer.id, order_type=order_type, items=items, payment_method=method
            )


class TestOrderPayments:

    def _preorder(self, customer, make_item, deposit=0):
        item = make_item()
        return sales_service.create_order(
            customer_id=customer.id,
            order_type="Preorder",
            items=[{"id": item.id, "qty": 2, "price": 30}],
            deposit_amount=deposit,
        )

    def test_payments_accumulate(self, customer, make_item):
        order = self._preorder(customer, make_item)
        result = sales_service.record_order_payment(order["id"], 20)
        assert result["status"] == "Partial"
        assert result["balance_due"] == 40.0

        result = sales_service.record_order_payment(order["id"], "40")
        assert result["status"] == "Paid"
        assert result["balance_due"] == 0.0

    def test_within_a_cent_counts_as_paid(self, customer, make_item):
        order = self._preorder(customer, make_item, deposit=10)
        result = sales_service.record_order_payment(order["id"], "49.995")
        assert result["status"] == "Paid"

    def test_paid_order_is_never_downgraded(self, customer, make_item):
        order = self._preorder(customer, make_item, deposit=60)
        assert order["status"] == "Paid"
        result = sales_service.record_order_payment(order["id"], 1)
        assert result["status"] == "Paid"

    def test_fulfilled_status_is_kept(self, customer, make_item):
        order = self._preorder(customer, make_item)
        row = db.session.get(CustomerOrder, order["id"])
        row.status = OrderStatus.FULFILLED
        db.session.commit()

        assert sales_service.record_order_payment(order["id"], 5)["status"] == "Fulfilled"

    @pytest.mark.parametrize("amount", [0, -5, None, "abc"])
    def test_rejects_non_positive_amount(self, customer, make_item, amount):
        order = self._preorder(customer, make_item)
        with pytest.raises(ValidationError):
            sales_service.record_order_payment(order["id"], amount)

    def test_unknown_order(self, app):
        with pytest.raises(NotFoundError):
            sales_service.record_order_payment(999, 5)


class TestOrderQueries:

    def test_open_preorders_queue(self, customer, make_item):
        box = make_item(card_name="OP-08 Booster Box", game_title="One Piece")
        deck = make_item(card_name="UA Starter", game_title="Union Arena")
        sales_service.create_order(
            customer_id=customer.id,
            order_type="Preorder",
            items=[{"id": box.id, "qty": 2, "price": 150}, {"id": deck.id, "qty": 1, "price": 20}],
        )
        shelf = make_item(stock=3)
        sales_service.create_order(
            customer_id=customer.id,
            order_type="In-Stock",
            items=[{"id": shelf.id, "qty": 1, "price": 150}],
        )

        queue = sales_service.open_preorders()
        assert len(queue) == 1
        assert queue[0]["items_summary"] == "OP-08 Booster Box (x2), UA Starter (x1)"
        assert queue[0]["game_tags"] == "One Piece,Union Arena"
        assert queue[0]["mobile_number"] == "91234567"

    def test_history_filters(self, customer, make_item):
        item = make_item(stock=5)
        sales_service.create_order(
            customer_id=customer.id, order_type="In-Stock", items=[{"id": item.id, "qty": 1, "price": 1}]
        )
        sales_service.create_order(
            customer_id=customer.id, order_type="Preorder", items=[{"id": item.id, "qty": 1, "price": 1}]
        )

        assert len(sales_service.order_history(search="Aiko")) == 2
        assert len(sales_service.order_history(search="Nobody")) == 0
        assert len(sales_service.order_history(order_type="Preorder")) == 1
        assert len(sales_service.order_history(status="Paid")) == 1

    def test_get_order_lines(self, customer, make_item):
        item = make_item(stock=5)
        created = sales_service.create_order(
            customer_id=customer.id, order_type="In-Stock", items=[{"id": item.id, "qty": 2, "price": "3.25"}]
        )
        order = sales_service.get_order(created["id"])
        assert order["customer_name"] == "Aiko Tan"
        assert order["items"][0]["line_total"] == 6.5
