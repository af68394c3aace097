"""Tests for the checkout pricing summary."""

from ordering.cart.line import CartLine
from ordering.checkout.fulfillment import FulfillmentMethod
from ordering.checkout.pricing import compute_pricing
from ordering.discount.candidate import DiscountCandidate, DiscountSource
from ordering.discount.resolver import DiscountResolution
from ordering.tax import TaxConfig

GA_ONLY = TaxConfig(nexus_states=("GA",), default_rate=0.07)


def _lines():
    return [CartLine(product_id="basil", name="Genovese Basil", unit_price=20.0, quantity=2)]


def _discount(amount, free_shipping=False, source=DiscountSource.MANUAL_PROMOTION_CODE):
    return DiscountResolution(
        winner=DiscountCandidate(source=source, amount=amount, label="SPRING5", free_shipping=free_shipping)
    )


class TestComputePricing:
    def test_manual_code_shipping_and_tax(self):
        pricing = compute_pricing(
            _lines(),
            discount=_discount(5.0),
            fulfillment_method=FulfillmentMethod.SHIPPING,
            shipping_rate_amount=6.0,
            tax_state="GA",
            tax_config=GA_ONLY,
        )
        assert pricing.subtotal == 40.0
        assert pricing.discount_amount == 5.0
        assert pricing.shipping_cost == 6.0
        assert pricing.tax.amount == 2.8
        assert pricing.total == 43.8
        assert pricing.item_count == 2

    def test_tax_is_on_undiscounted_subtotal(self):
        pricing = compute_pricing(_lines(), discount=_discount(10.0), tax_state="GA", tax_config=GA_ONLY)
        assert pricing.tax.amount == 2.8
        assert pricing.total == 32.8

    def test_pickup_never_charges_shipping(self):
        pricing = compute_pricing(
            _lines(),
            fulfillment_method=FulfillmentMethod.PICKUP,
            shipping_rate_amount=6.0,
            tax_state="GA",
            tax_config=GA_ONLY,
        )
        assert pricing.shipping_cost == 0.0
        assert pricing.total == 42.8

    def test_free_shipping_winner_zeroes_shipping(self):
        pricing = compute_pricing(
            _lines(),
            discount=_discount(0.0, free_shipping=True),
            fulfillment_method=FulfillmentMethod.SHIPPING,
            shipping_rate_amount=6.0,
            tax_state="CA",
            tax_config=GA_ONLY,
        )
        assert pricing.free_shipping is True
        assert pricing.shipping_cost == 0.0
        assert pricing.discount_label is None
        assert pricing.total == 40.0

    def test_discount_capped_at_subtotal(self):
        pricing = compute_pricing(_lines(), discount=_discount(55.0), tax_state="CA", tax_config=GA_ONLY)
        assert pricing.discount_amount == 40.0
        assert pricing.total == 0.0

    def test_order_pricing_snapshot(self):
        pricing = compute_pricing(_lines(), discount=_discount(5.0), shipping_rate_amount=6.0, tax_state="GA")
        snapshot = pricing.as_order_pricing()
        assert snapshot["grand_total"] == 43.8
        assert snapshot["tax_total"] == 2.8
        assert snapshot["discount_label"] == "SPRING5"
        assert snapshot["tax_note"] == "GA 7%"
