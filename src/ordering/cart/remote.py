"""Persisted cart port and its repository-backed adapter."""

import json
from abc import ABC, abstractmethod

from protean.utils.globals import current_domain

from ordering.cart.line import CartLine
from ordering.cart.management import ClearCart, ReplaceCartLines, find_cart_for_customer


class PersistedCartStore(ABC):
    """Remote cart keyed by customer."""

    @abstractmethod
    def get_cart(self, customer_id: str) -> tuple[CartLine, ...]:
        """Return the customer's persisted lines (empty if the customer has no cart)."""
        ...

    @abstractmethod
    def replace_cart(self, customer_id: str, lines) -> None:
        """Overwrite the customer's persisted lines."""
        ...

    @abstractmethod
    def clear_cart(self, customer_id: str) -> None:
        ...


class RepositoryCartStore(PersistedCartStore):
    """Persisted cart backed by the ShoppingCart aggregate."""

    def get_cart(self, customer_id: str) -> tuple[CartLine, ...]:
        cart = find_cart_for_customer(customer_id)
        return cart.to_lines() if cart else ()

    def replace_cart(self, customer_id: str, lines) -> None:
        current_domain.process(
            ReplaceCartLines(
                customer_id=str(customer_id),
                lines=json.dumps([line.to_dict() for line in lines]),
            ),
            asynchronous=False,
        )

    def clear_cart(self, customer_id: str) -> None:
        current_domain.process(ClearCart(customer_id=str(customer_id)), asynchronous=False)
