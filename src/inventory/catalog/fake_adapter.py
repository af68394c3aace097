"""In-memory catalog for development and testing."""

from dataclasses import replace

from inventory.catalog.port import CatalogPort, CatalogProduct, InsufficientStock


class InMemoryCatalog(CatalogPort):
    """Catalog backed by a dict of CatalogProduct records."""

    def __init__(self, products: list[CatalogProduct] | None = None):
        self._products: dict[str, CatalogProduct] = {}
        self.lookups: list[str] = []
        for product in products or []:
            self.upsert(product)

    def upsert(self, product: CatalogProduct) -> None:
        self._products[str(product.product_id)] = product

    def set_price(self, product_id: str, price: float, compare_at_price: float | None = None) -> None:
        product = self._products[str(product_id)]
        self._products[str(product_id)] = replace(product, price=price, compare_at_price=compare_at_price)

    def set_available(self, product_id: str, available_quantity: int) -> None:
        product = self._products[str(product_id)]
        self._products[str(product_id)] = replace(product, available_quantity=available_quantity)

    def get_product(self, product_id: str) -> CatalogProduct | None:
        self.lookups.append(str(product_id))
        return self._products.get(str(product_id))

    def decrement_stock(self, product_id: str, quantity: int) -> int:
        product = self._products.get(str(product_id))
        available = product.available_quantity if product else 0
        if product is None or available < quantity:
            raise InsufficientStock(
                product_id=str(product_id),
                name=product.name if product else str(product_id),
                requested=quantity,
                available=available,
            )
        remaining = available - quantity
        self._products[str(product_id)] = replace(product, available_quantity=remaining)
        return remaining

    def restore_stock(self, product_id: str, quantity: int) -> int:
        product = self._products[str(product_id)]
        available = product.available_quantity + quantity
        self._products[str(product_id)] = replace(product, available_quantity=available)
        return available

    def reset(self) -> None:
        self._products.clear()
        self.lookups.clear()
