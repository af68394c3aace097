"""Tests for resolving allowed fulfillment methods from cart constraints."""

from ordering.cart.line import CartLine
from ordering.checkout.fulfillment import CONFLICT_MESSAGE, FulfillmentMethod, resolve_fulfillment


def _line(product_id, constraint):
    return CartLine(product_id=product_id, name=product_id, unit_price=1.0, quantity=1, fulfillment_constraint=constraint)


class TestResolveFulfillment:
    def test_either_only_allows_both(self):
        resolution = resolve_fulfillment([_line("a", "either"), _line("b", "either")])
        assert resolution.forced_method is None
        assert resolution.allowed_methods == (FulfillmentMethod.SHIPPING, FulfillmentMethod.PICKUP)
        assert resolution.conflict is False

    def test_pickup_only_forces_pickup(self):
        resolution = resolve_fulfillment([_line("a", "pickupOnly"), _line("b", "either")])
        assert resolution.must_pickup is True
        assert resolution.forced_method == FulfillmentMethod.PICKUP
        assert not resolution.allows(FulfillmentMethod.SHIPPING)

    def test_all_ship_only_forces_shipping(self):
        resolution = resolve_fulfillment([_line("a", "shipOnly")])
        assert resolution.must_ship is True
        assert resolution.forced_method == FulfillmentMethod.SHIPPING

    def test_ship_only_mixed_with_either_does_not_force(self):
        resolution = resolve_fulfillment([_line("a", "shipOnly"), _line("b", "either")])
        assert resolution.must_ship is False
        assert resolution.has_ship_only is True
        assert resolution.forced_method is None

    def test_pickup_only_and_ship_only_conflict(self):
        resolution = resolve_fulfillment([_line("a", "pickupOnly"), _line("b", "shipOnly"), _line("c", "either")])
        assert resolution.conflict is True
        assert resolution.allowed_methods == ()
        assert resolution.forced_method is None
        assert "separate orders" in CONFLICT_MESSAGE

    def test_empty_cart(self):
        resolution = resolve_fulfillment([])
        assert resolution.conflict is False
        assert resolution.forced_method is None
