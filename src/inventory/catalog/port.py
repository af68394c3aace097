"""Catalog port — live product pricing and availability.

Cart price reconciliation, stock validation, and the order placement guard
all read through this interface. Adapters are swapped via configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogProduct:
    """Current catalog state of a product."""

    product_id: str
    name: str
    price: float
    compare_at_price: float | None = None
    available_quantity: int = 0
    category: str = "Uncategorized"
    fulfillment_constraint: str = "either"
    seedlings_per_unit: int = 1


class InsufficientStock(Exception):
    """Raised by ``decrement_stock`` when a product cannot cover the quantity."""

    def __init__(self, product_id: str, name: str, requested: int, available: int):
        self.product_id = product_id
        self.name = name
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for: {name} (requested {requested}, available {available})")


class CatalogPort(ABC):
    """Abstract interface for catalog adapters."""

    @abstractmethod
    def get_product(self, product_id: str) -> CatalogProduct | None:
        """Return the current catalog entry, or None if the product no longer exists."""
        ...

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> int:
        """Remove ``quantity`` units from available stock.

        Returns:
            The remaining available quantity.

        Raises:
            InsufficientStock: when fewer than ``quantity`` units are available.
        """
        ...

    @abstractmethod
    def restore_stock(self, product_id: str, quantity: int) -> int:
        """Put back ``quantity`` units taken by ``decrement_stock``.

        Returns:
            The new available quantity.
        """
        ...
