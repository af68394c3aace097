"""Tests for the Order aggregate — placement snapshot and payment lifecycle."""

import re

import pytest
from ordering.order.events import OrderFinalized, OrderPlaced, PaymentAuthorized, PaymentFailed
from ordering.order.order import Order, OrderStatus, PaymentStatus, generate_order_number
from protean.exceptions import ValidationError

LINES = [
    {
        "product_id": "basil",
        "name": "Genovese Basil",
        "unit_price": 20.0,
        "quantity": 2,
        "category": "Herbs",
        "fulfillment_constraint": "either",
        "seedlings_per_unit": 1,
    }
]
PRICING = {
    "subtotal": 40.0,
    "discount_total": 5.0,
    "discount_label": "SPRING5 ($5.00 off)",
    "shipping_cost": 6.0,
    "tax_total": 2.8,
    "tax_rate": 0.07,
    "tax_note": "GA 7%",
    "grand_total": 43.8,
}


def _place(**overrides):
    kwargs = dict(
        email="ada@example.com",
        lines_data=LINES,
        fulfillment_method="shipping",
        pricing=PRICING,
        checkout_id="chk-001",
        shipping_address={
            "address_line1": "1 Peach St",
            "city": "Atlanta",
            "state": "GA",
            "postal_code": "30301",
        },
        shipping_selection={
            "rate_id": "fake-rate-0",
            "carrier_name": "Ground",
            "service_name": "Ground Saver",
            "amount": 6.0,
        },
    )
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestPlaceOrder:
    def test_snapshot(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert len(order.lines) == 1
        assert order.lines[0].quantity == 2
        assert order.pricing.grand_total == 43.8
        assert order.shipping_address.state == "GA"
        assert order.shipping_selection.rate_id == "fake-rate-0"
        assert order.pickup is None

    def test_raises_order_placed(self):
        order = _place()
        assert isinstance(order._events[-1], OrderPlaced)
        assert order._events[-1].grand_total == 43.8

    def test_order_number_format(self):
        assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", generate_order_number())
        assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", _place().order_number)

    def test_needs_lines(self):
        with pytest.raises(ValidationError) as exc:
            _place(lines_data=[])
        assert "lines" in exc.value.messages

    def test_pickup_order(self):
        order = _place(
            fulfillment_method="pickup",
            shipping_address=None,
            shipping_selection=None,
            pickup={"location_id": "farm", "location_name": "Home Farm", "schedule_id": "slot-1", "pickup_date": "2026-05-02"},
        )
        assert order.pickup.location_name == "Home Farm"
        assert order.shipping_address is None


class TestPaymentLifecycle:
    def test_authorize_then_finalize(self):
        order = _place()
        order.record_payment_intent("pi_1", 43.8)
        order.authorize_payment("pi_1")
        assert order.status == OrderStatus.AUTHORIZED.value
        assert isinstance(order._events[-1], PaymentAuthorized)

        order.finalize()
        assert order.status == OrderStatus.FINALIZED.value
        assert isinstance(order._events[-1], OrderFinalized)
        assert order._events[-1].checkout_id == "chk-001"

    def test_failure_keeps_order_pending_and_allows_retry(self):
        order = _place()
        order.record_payment_intent("pi_1", 43.8)
        order.fail_payment("Card declined")
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.FAILED.value
        assert isinstance(order._events[-1], PaymentFailed)

        order.record_payment_intent("pi_1", 43.8)
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_failure_reason is None

    def test_finalize_requires_authorized_payment(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.finalize()
        assert "payment_status" in exc.value.messages

    def test_finalize_without_payment_when_not_required(self):
        order = _place()
        order.finalize(payment_required=False)
        assert order.status == OrderStatus.FINALIZED.value

    def test_finalized_order_is_terminal(self):
        order = _place()
        order.finalize(payment_required=False)
        with pytest.raises(ValidationError):
            order.finalize(payment_required=False)
        with pytest.raises(ValidationError):
            order.fail_payment("late failure")

    def test_authorize_with_mismatched_intent_rejected(self):
        order = _place()
        order.record_payment_intent("pi_1", 43.8)
        with pytest.raises(ValidationError):
            order.authorize_payment("pi_other")

    def test_credit_recorded_with_intent(self):
        order = _place()
        order.record_payment_intent("pi_1", 33.8, credit_applied=10.0)
        assert order.amount_charged == 33.8
        assert order.credit_applied == 10.0
