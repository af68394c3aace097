"""Application tests for order placement and the payment-lifecycle patches."""

import pytest
from inventory.catalog.port import InsufficientStock
from ordering.order.order import OrderStatus, PaymentStatus
from ordering.order.store import DomainOrderStore
from protean.exceptions import ValidationError


_BASIL_AND_TOMATO = [
    {"product_id": "basil", "name": "Genovese Basil", "unit_price": 20.0, "quantity": 2, "category": "Herbs"},
    {"product_id": "tomato", "name": "Cherry Tomato", "unit_price": 4.5, "quantity": 1, "category": "Vegetables"},
]


def _snapshot(quantity=2, **overrides):
    snapshot = {
        "checkout_id": "chk-100",
        "email": "grower@example.com",
        "customer_name": "Ada Grower",
        "lines": [
            {
                "product_id": "basil",
                "name": "Genovese Basil",
                "unit_price": 20.0,
                "quantity": quantity,
                "category": "Herbs",
                "fulfillment_constraint": "either",
                "seedlings_per_unit": 1,
            }
        ],
        "fulfillment_method": "shipping",
        "shipping_address": {
            "address_line1": "12 Peachtree St",
            "city": "Atlanta",
            "state": "GA",
            "postal_code": "30303",
        },
        "shipping_selection": {
            "rate_id": "fake-rate-0",
            "carrier_name": "Ground",
            "service_name": "Ground Saver",
            "amount": 6.0,
            "transit_days": 4,
        },
        "subtotal": 40.0,
        "discount_total": 5.0,
        "discount_label": "Spring ($5.00 off)",
        "shipping_cost": 6.0,
        "tax_total": 2.8,
        "tax_rate": 0.07,
        "grand_total": 43.8,
    }
    snapshot.update(overrides)
    return snapshot


class TestPlaceOrder:
    def test_creates_pending_order_and_commits_stock(self, catalog):
        store = DomainOrderStore()

        ref = store.create_order(_snapshot())

        order = store.get_order(ref.order_id)
        assert order.order_number == ref.order_number
        assert order.status == OrderStatus.PENDING.value
        assert order.pricing.grand_total == 43.8
        assert order.shipping_selection.rate_id == "fake-rate-0"
        assert catalog.get_product("basil").available_quantity == 48

    def test_insufficient_stock_rejects_and_leaves_stock_alone(self, catalog):
        catalog.set_available("basil", 1)

        with pytest.raises(ValidationError) as exc:
            DomainOrderStore().create_order(_snapshot(quantity=2))

        assert exc.value.messages["stock"] == ["Insufficient stock for: Genovese Basil"]
        assert catalog.get_product("basil").available_quantity == 1

    def test_failure_part_way_puts_stock_back(self, catalog, monkeypatch):
        decrement = catalog.decrement_stock

        def failing_on_tomato(product_id, quantity):
            if product_id == "tomato":
                raise ConnectionError("inventory unavailable")
            return decrement(product_id, quantity)

        monkeypatch.setattr(catalog, "decrement_stock", failing_on_tomato)
        with pytest.raises(ConnectionError):
            DomainOrderStore().create_order(_snapshot(lines=_BASIL_AND_TOMATO))

        assert catalog.get_product("basil").available_quantity == 50
        assert catalog.get_product("tomato").available_quantity == 4

        monkeypatch.undo()
        DomainOrderStore().create_order(_snapshot(lines=_BASIL_AND_TOMATO))

        assert catalog.get_product("basil").available_quantity == 48
        assert catalog.get_product("tomato").available_quantity == 3

    def test_late_sell_out_part_way_reports_stock(self, catalog, monkeypatch):
        decrement = catalog.decrement_stock

        def sold_out_tomato(product_id, quantity):
            if product_id == "tomato":
                raise InsufficientStock("tomato", "Cherry Tomato", requested=quantity, available=0)
            return decrement(product_id, quantity)

        monkeypatch.setattr(catalog, "decrement_stock", sold_out_tomato)
        with pytest.raises(ValidationError) as exc:
            DomainOrderStore().create_order(_snapshot(lines=_BASIL_AND_TOMATO))

        assert exc.value.messages["stock"] == ["Insufficient stock for: Cherry Tomato"]
        assert catalog.get_product("basil").available_quantity == 50


class TestPaymentPatches:
    def test_intent_authorize_finalize(self, catalog):
        store = DomainOrderStore()
        ref = store.create_order(_snapshot())

        store.update_order(ref.order_id, {"payment_intent_id": "pi_1", "amount_charged": 43.8, "credit_applied": 0.0})
        store.update_order(ref.order_id, {"payment_status": "authorized", "payment_intent_id": "pi_1"})
        store.update_order(ref.order_id, {"status": "finalized", "payment_required": True})

        order = store.get_order(ref.order_id)
        assert order.status == OrderStatus.FINALIZED.value
        assert order.payment_status == PaymentStatus.AUTHORIZED.value
        assert order.amount_charged == 43.8

    def test_failure_then_new_intent(self, catalog):
        store = DomainOrderStore()
        ref = store.create_order(_snapshot())

        store.update_order(ref.order_id, {"payment_intent_id": "pi_1", "amount_charged": 43.8})
        store.update_order(ref.order_id, {"payment_status": "failed", "reason": "Card declined"})
        store.update_order(ref.order_id, {"payment_intent_id": "pi_2", "amount_charged": 43.8})

        order = store.get_order(ref.order_id)
        assert order.payment_intent_id == "pi_2"
        assert order.status == OrderStatus.PENDING.value

    def test_finalize_requires_authorization(self, catalog):
        store = DomainOrderStore()
        ref = store.create_order(_snapshot())

        with pytest.raises(ValidationError):
            store.update_order(ref.order_id, {"status": "finalized", "payment_required": True})

    def test_finalize_without_payments(self, catalog):
        store = DomainOrderStore()
        ref = store.create_order(_snapshot())

        store.update_order(ref.order_id, {"status": "finalized", "payment_required": False})

        assert store.get_order(ref.order_id).status == OrderStatus.FINALIZED.value

    def test_unknown_patch_rejected(self, catalog):
        store = DomainOrderStore()
        ref = store.create_order(_snapshot())

        with pytest.raises(ValidationError) as exc:
            store.update_order(ref.order_id, {"note": "hello"})
        assert "patch" in exc.value.messages
