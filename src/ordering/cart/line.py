"""Cart lines — the value held by the cart store for each product.

Lines are immutable value objects; every cart operation returns a new tuple
of lines. Quantity is always at least 1: decrementing goes no lower, and the
only way to drop a line is to remove it.
"""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


class FulfillmentConstraint(Enum):
    EITHER = "either"
    SHIP_ONLY = "shipOnly"
    PICKUP_ONLY = "pickupOnly"


@ordering.value_object
class CartLine:
    """A product in the cart with the price the customer was shown."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    compare_at_price = Float()
    quantity = Integer(required=True, min_value=1)
    category = String(max_length=100, default="Uncategorized")
    fulfillment_constraint = String(
        choices=FulfillmentConstraint,
        default=FulfillmentConstraint.EITHER.value,
    )
    seedlings_per_unit = Integer(min_value=1, default=1)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    @property
    def physical_units(self) -> int:
        """Shippable units: sale quantity times plants per sale unit."""
        return self.quantity * (self.seedlings_per_unit or 1)


def line_with(line: CartLine, **changes) -> CartLine:
    """Copy of ``line`` with some fields replaced."""
    return CartLine(**{**line.to_dict(), **changes})


def line_from_product(product, quantity: int) -> CartLine:
    """Build a line from a catalog product (anything with CatalogProduct's attributes)."""
    return CartLine(
        product_id=str(product.product_id),
        name=product.name,
        unit_price=product.price,
        compare_at_price=product.compare_at_price,
        quantity=quantity,
        category=product.category or "Uncategorized",
        fulfillment_constraint=product.fulfillment_constraint or FulfillmentConstraint.EITHER.value,
        seedlings_per_unit=product.seedlings_per_unit or 1,
    )


def find_line(lines, product_id) -> CartLine | None:
    return next((line for line in lines if str(line.product_id) == str(product_id)), None)


def add_line(lines, product, quantity: int = 1) -> tuple[CartLine, ...]:
    """Add ``quantity`` of a product, incrementing the existing line if present."""
    if quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    existing = find_line(lines, product.product_id)
    if existing is None:
        return (*lines, line_from_product(product, quantity))

    return tuple(
        line_with(line, quantity=line.quantity + quantity) if line is existing else line for line in lines
    )


def update_line_quantity(lines, product_id, delta: int) -> tuple[CartLine, ...]:
    """Shift a line's quantity by ``delta``, never below 1."""
    if find_line(lines, product_id) is None:
        raise ValidationError({"product_id": ["Item not found in cart"]})

    return tuple(
        line_with(line, quantity=max(1, line.quantity + delta)) if str(line.product_id) == str(product_id) else line
        for line in lines
    )


def remove_line(lines, product_id) -> tuple[CartLine, ...]:
    return tuple(line for line in lines if str(line.product_id) != str(product_id))


def lines_subtotal(lines) -> float:
    return sum(line.line_total for line in lines)


def lines_item_count(lines) -> int:
    return sum(line.quantity for line in lines)
