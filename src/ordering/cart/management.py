"""Persisted cart management — commands and handler.

The cart store is the only writer. It sends whole-cart replacements (after
reconciliation and after each debounced burst of edits) and clears the cart
once an order is finalised.
"""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.line import CartLine
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class ReplaceCartLines:
    """Overwrite a customer's persisted cart, creating it on first write."""

    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of CartLine dicts


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    """Empty a customer's persisted cart."""

    customer_id = Identifier(required=True)


def find_cart_for_customer(customer_id) -> ShoppingCart | None:
    repo = current_domain.repository_for(ShoppingCart)
    carts = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    return carts[0] if carts else None


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(ReplaceCartLines)
    def replace_cart_lines(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = find_cart_for_customer(command.customer_id) or ShoppingCart.create(customer_id=command.customer_id)

        raw_lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines
        cart.replace_lines([CartLine(**line) for line in raw_lines])
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = find_cart_for_customer(command.customer_id)
        if cart is None:
            return None
        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)
