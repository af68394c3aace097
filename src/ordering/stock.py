"""Stock validation — the last check before an order is created."""

from dataclasses import dataclass

import structlog

from inventory.catalog import get_catalog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockIssue:
    product_id: str
    name: str
    requested: int
    available: int


class StockValidator:
    def __init__(self, catalog=None):
        self._catalog = catalog

    @property
    def catalog(self):
        return self._catalog or get_catalog()

    def check(self, lines) -> list[StockIssue]:
        """One issue per line whose requested quantity exceeds what is on hand.

        A product missing from the catalog counts as zero available.
        """
        issues = []
        for line in lines:
            product = self.catalog.get_product(str(line.product_id))
            available = product.available_quantity if product else 0
            if available < line.quantity:
                issues.append(
                    StockIssue(
                        product_id=str(line.product_id),
                        name=line.name,
                        requested=line.quantity,
                        available=max(available, 0),
                    )
                )

        if issues:
            logger.info(
                "Stock check found issues",
                products=[issue.product_id for issue in issues],
            )
        return issues
