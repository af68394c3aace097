"""Tests for the Promotion aggregate — eligibility and discount amounts."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.cart.line import CartLine
from ordering.discount.promotion import INVALID_CODE_MESSAGE, Promotion, normalize_code
from protean.exceptions import ValidationError


def _lines():
    return [
        CartLine(product_id="basil", name="Basil", unit_price=20.0, quantity=2, category="Herbs"),
        CartLine(product_id="fig", name="Fig Tree", unit_price=35.0, quantity=1, category="Fruit Trees"),
    ]


class TestDiscountAmounts:
    def test_percentage(self):
        promotion = Promotion.create(name="Spring", code="spring", discount_type="percentage", discount_value=10)
        assert promotion.discount_for(_lines()) == 7.5
        assert promotion.label == "Spring (10% off)"

    def test_fixed_amount_capped_at_eligible_total(self):
        promotion = Promotion.create(
            name="Herb deal",
            discount_type="fixed_amount",
            discount_value=50,
            scope="categories",
            categories=["Herbs"],
        )
        assert promotion.discount_for(_lines()) == 40.0

    def test_excluded_category(self):
        promotion = Promotion.create(
            name="No trees", discount_type="percentage", discount_value=10, excluded_categories=["Fruit Trees"]
        )
        assert promotion.eligible_total(_lines()) == 40.0

    def test_free_shipping_has_no_amount(self):
        promotion = Promotion.create(name="Ship free", code="SHIPFREE", discount_type="free_shipping")
        assert promotion.discount_for(_lines()) == 0.0
        assert promotion.is_free_shipping is True

    def test_percentage_over_100_rejected(self):
        with pytest.raises(ValidationError):
            Promotion.create(name="Too much", discount_type="percentage", discount_value=150)


class TestRejectionReasons:
    def test_applicable(self):
        promotion = Promotion.create(name="Spring", code="SPRING", discount_type="percentage", discount_value=10)
        assert promotion.rejection_reason(_lines()) is None

    def test_expired(self):
        now = datetime.now(UTC)
        promotion = Promotion.create(
            name="Old", code="OLD", discount_type="percentage", discount_value=10,
            starts_at=now - timedelta(days=10), ends_at=now - timedelta(days=1),
        )
        assert promotion.rejection_reason(_lines(), now=now) == "This promotion has expired"

    def test_not_started(self):
        now = datetime.now(UTC)
        promotion = Promotion.create(
            name="Soon", code="SOON", discount_type="percentage", discount_value=10, starts_at=now + timedelta(days=1)
        )
        assert promotion.rejection_reason(_lines(), now=now) == "This promotion has not started yet"

    def test_usage_limit(self):
        promotion = Promotion.create(name="Once", code="ONCE", discount_type="fixed_amount", discount_value=5, max_uses=1)
        promotion.record_usage("order-1")
        assert promotion.rejection_reason(_lines()) == "This promotion has reached its usage limit"

    def test_minimum_order(self):
        promotion = Promotion.create(
            name="Big", code="BIG", discount_type="fixed_amount", discount_value=5, minimum_order_amount=150
        )
        assert promotion.rejection_reason(_lines()) == "Minimum order of $150.00 required"

    def test_allow_list(self):
        promotion = Promotion.create(
            name="VIP", code="VIP", discount_type="fixed_amount", discount_value=5, customer_allow_list=["vip@example.com"]
        )
        assert promotion.rejection_reason(_lines(), email="someone@example.com") == (
            "This promotion is not available for your account"
        )
        assert promotion.rejection_reason(_lines(), email="VIP@example.com") is None

    def test_no_qualifying_items(self):
        promotion = Promotion.create(
            name="Roses", code="ROSE", discount_type="percentage", discount_value=10,
            scope="products", product_ids=["rose"],
        )
        assert promotion.rejection_reason(_lines()) == "No items in your cart qualify for this promotion"


class TestCodes:
    def test_codes_are_normalized(self):
        assert normalize_code(" spring5 ") == "SPRING5"
        assert Promotion.create(name="S", code="spring5", discount_type="fixed_amount", discount_value=5).code == "SPRING5"

    def test_invalid_code_message(self):
        assert INVALID_CODE_MESSAGE == "Invalid or expired coupon code"
