"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Identifier, Integer, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartLinesReplaced:
    """The persisted cart lines were overwritten by the cart store."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of CartLine dicts
    item_count = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """Every line was removed from the persisted cart (checkout finished or customer cleared it)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    cleared_at = DateTime(required=True)
