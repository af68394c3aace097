"""Shopping Cart aggregate (CQRS) — the remote, persisted copy of a customer's cart.

The browser-side cart lives in the local cache and is authoritative while the
customer is anonymous. Once the customer is known, the cart store reconciles
the local lines with this aggregate and, from then on, writes every settled
change back here (debounced) so the cart follows the customer across devices.

There is one cart per customer. Writes replace the whole line list; the cart
never merges on its own — merging is the cart store's job.
"""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import CartCleared, CartLinesReplaced
from ordering.cart.line import CartLine, FulfillmentConstraint
from ordering.domain import ordering


@ordering.entity(part_of="ShoppingCart")
class CartItem:
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
    position = Integer(default=0)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def replace_lines(self, lines):
        """Overwrite the persisted lines with ``lines`` (CartLine values)."""
        for item in list(self.items):
            self.remove_items(item)

        now = datetime.now(UTC)
        for position, line in enumerate(lines):
            self.add_items(
                CartItem(
                    product_id=line.product_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    compare_at_price=line.compare_at_price,
                    quantity=line.quantity,
                    category=line.category,
                    fulfillment_constraint=line.fulfillment_constraint,
                    seedlings_per_unit=line.seedlings_per_unit,
                    position=position,
                    added_at=now,
                )
            )
        self.updated_at = now

        self.raise_(
            CartLinesReplaced(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                lines=json.dumps([line.to_dict() for line in lines]),
                item_count=sum(line.quantity for line in lines),
            )
        )

    def clear(self):
        """Drop every line; the cart itself stays associated with the customer."""
        for item in list(self.items):
            self.remove_items(item)
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                cleared_at=now,
            )
        )

    def to_lines(self) -> tuple[CartLine, ...]:
        """Current lines as CartLine values, in insertion order."""
        ordered = sorted(self.items, key=lambda i: i.position or 0)
        return tuple(
            CartLine(
                product_id=str(item.product_id),
                name=item.name,
                unit_price=item.unit_price,
                compare_at_price=item.compare_at_price,
                quantity=item.quantity,
                category=item.category,
                fulfillment_constraint=item.fulfillment_constraint,
                seedlings_per_unit=item.seedlings_per_unit,
            )
            for item in ordered
        )
