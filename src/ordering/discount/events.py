"""Domain events for the Promotion aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Promotion")
class PromotionCreated:
    """A promotion was configured."""

    __version__ = 1

    promotion_id = Identifier(required=True)
    name = String(required=True)
    code = String()
    discount_type = String(required=True)
    discount_value = Float()
    created_at = DateTime(required=True)


@ordering.event(part_of="Promotion")
class PromotionRedeemed:
    """A finalised order used the promotion."""

    __version__ = 1

    promotion_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    email = String()
    times_used = Integer(required=True)
    redeemed_at = DateTime(required=True)
