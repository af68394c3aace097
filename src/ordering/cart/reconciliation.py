"""Cart reconciliation between the local cache and the persisted cart.

The merge is a small, deterministic function with explicit tie-breaks:

    * every product in either cart appears exactly once
    * products in both carts take the remote line (remote prices reflect the
      live catalog) with the larger of the two quantities
    * products only in the local cart are kept unchanged

Remote lines come first, in remote order, followed by local-only lines in
local order. Merging a cart with itself returns it unchanged.
"""

import structlog

from ordering.cart.line import CartLine, find_line, line_with

logger = structlog.get_logger(__name__)


def merge_carts(remote_lines, local_lines) -> tuple[CartLine, ...]:
    local_by_id = {str(line.product_id): line for line in local_lines}
    remote_ids = {str(line.product_id) for line in remote_lines}

    merged = []
    for remote in remote_lines:
        local = local_by_id.get(str(remote.product_id))
        if local is not None and local.quantity > remote.quantity:
            merged.append(line_with(remote, quantity=local.quantity))
        else:
            merged.append(remote)

    merged.extend(line for line in local_lines if str(line.product_id) not in remote_ids)
    return tuple(merged)


def needs_remote_write(remote_lines, local_lines) -> bool:
    """True when the local cart holds something the remote cart lacks.

    Either a product missing remotely or a larger local quantity. Used on page
    load to avoid rewriting an already up-to-date remote cart.
    """
    for local in local_lines:
        remote = find_line(remote_lines, local.product_id)
        if remote is None or local.quantity > remote.quantity:
            return True
    return False


def normalize_sale_price(price: float, compare_at_price: float | None) -> tuple[float, float | None]:
    """Order a sale pair so the charged price is the lower figure.

    Catalog rows sometimes carry the sale price in ``compare_at_price``; when
    both are positive and differ, the lower one is what the customer pays.
    """
    price = float(price or 0.0)
    if compare_at_price is not None and compare_at_price > 0 and price > 0 and compare_at_price != price:
        return min(price, compare_at_price), max(price, compare_at_price)
    return price, compare_at_price


def reconcile_prices(lines, catalog) -> tuple[CartLine, ...]:
    """Refresh every line's price and compare-at price from the catalog.

    Guards against a sale window opening or closing while items sat in a
    cached cart. Lines whose product is gone from the catalog are left as-is.
    """
    reconciled = []
    for line in lines:
        product = catalog.get_product(str(line.product_id))
        if product is None:
            reconciled.append(line)
            continue

        price, compare_at = normalize_sale_price(product.price, product.compare_at_price)
        if price != line.unit_price or compare_at != line.compare_at_price:
            logger.info(
                "Cart line price refreshed",
                product_id=str(line.product_id),
                old_price=line.unit_price,
                new_price=price,
            )
            reconciled.append(line_with(line, unit_price=price, compare_at_price=compare_at))
        else:
            reconciled.append(line)
    return tuple(reconciled)
