"""Fulfillment resolution — which delivery methods a cart allows.

A conflict (pickup-only and ship-only items together) is reported and
blocks checkout until the cart changes; it is never resolved silently.
"""

from dataclasses import dataclass
from enum import Enum

from ordering.cart.line import FulfillmentConstraint


class FulfillmentMethod(Enum):
    SHIPPING = "shipping"
    PICKUP = "pickup"


CONFLICT_MESSAGE = (
    "Your cart contains items that can only be picked up and items that can only be shipped. "
    "Please place separate orders for these items."
)


@dataclass(frozen=True)
class FulfillmentResolution:
    has_pickup_only: bool
    has_ship_only: bool
    has_either: bool
    must_pickup: bool
    must_ship: bool
    conflict: bool

    @property
    def forced_method(self) -> FulfillmentMethod | None:
        if self.conflict:
            return None
        if self.must_pickup:
            return FulfillmentMethod.PICKUP
        if self.must_ship:
            return FulfillmentMethod.SHIPPING
        return None

    @property
    def allowed_methods(self) -> tuple[FulfillmentMethod, ...]:
        if self.conflict:
            return ()
        if self.forced_method:
            return (self.forced_method,)
        return (FulfillmentMethod.SHIPPING, FulfillmentMethod.PICKUP)

    def allows(self, method: FulfillmentMethod) -> bool:
        return method in self.allowed_methods


def resolve_fulfillment(lines) -> FulfillmentResolution:
    constraints = [line.fulfillment_constraint or FulfillmentConstraint.EITHER.value for line in lines]
    has_pickup_only = FulfillmentConstraint.PICKUP_ONLY.value in constraints
    has_ship_only = FulfillmentConstraint.SHIP_ONLY.value in constraints
    has_either = FulfillmentConstraint.EITHER.value in constraints

    return FulfillmentResolution(
        has_pickup_only=has_pickup_only,
        has_ship_only=has_ship_only,
        has_either=has_either,
        must_pickup=has_pickup_only and not has_ship_only,
        must_ship=bool(constraints) and all(c == FulfillmentConstraint.SHIP_ONLY.value for c in constraints),
        conflict=has_pickup_only and has_ship_only,
    )
