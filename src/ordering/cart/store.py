"""Cart store — the single cart a shopper sees on this device.

Every mutation updates the in-memory lines and the local cache immediately.
For a signed-in shopper the persisted cart is brought up to date through a
debounced writer, and only once the initial reconciliation for that
shopper has completed; edits made while reconciliation is in flight are
folded into the merge instead.

On sign-in the device cart and the persisted cart are merged and the result
is always written back. On a plain page load for an already signed-in
shopper the merge is written back only when the device holds something the
persisted cart does not. Anonymous shoppers get their cached prices
refreshed from the catalog.
"""

import time
from collections.abc import Callable

import structlog

from ordering.cart.cache import LocalCartCache
from ordering.cart.line import (
    CartLine,
    add_line,
    find_line,
    line_with,
    lines_item_count,
    lines_subtotal,
    remove_line,
    update_line_quantity,
)
from ordering.cart.reconciliation import merge_carts, needs_remote_write, reconcile_prices
from ordering.cart.remote import PersistedCartStore
from ordering.cart.sync import DebouncedWriter

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(
        self,
        cache: LocalCartCache,
        remote: PersistedCartStore,
        catalog,
        debounce_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache = cache
        self._remote = remote
        self._catalog = catalog
        self._lines: tuple[CartLine, ...] = cache.load()
        self._customer_id: str | None = None
        self._initial_load_done = False
        self._writer = DebouncedWriter(self._write_remote, debounce_seconds, clock)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._lines

    @property
    def customer_id(self) -> str | None:
        return self._customer_id

    @property
    def initial_load_done(self) -> bool:
        return self._initial_load_done

    @property
    def sync_pending(self) -> bool:
        return self._writer.pending

    @property
    def subtotal(self) -> float:
        return lines_subtotal(self._lines)

    @property
    def item_count(self) -> int:
        return lines_item_count(self._lines)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def load(self, customer_id: str | None = None) -> tuple[CartLine, ...]:
        """Initial load for a session, with or without a signed-in shopper."""
        if customer_id:
            self._reconcile_with_remote(str(customer_id), always_write=False)
        else:
            self._customer_id = None
            self._set_lines(reconcile_prices(self._lines, self._catalog), sync=False)
            self._initial_load_done = True
        return self._lines

    def sign_in(self, customer_id: str) -> tuple[CartLine, ...]:
        """Merge the device cart into the shopper's persisted cart."""
        if self._customer_id == str(customer_id) and self._initial_load_done:
            return self._lines
        self._reconcile_with_remote(str(customer_id), always_write=True)
        return self._lines

    def sign_out(self) -> None:
        """Forget the shopper and empty the device cart; the persisted cart is kept."""
        self._writer.cancel()
        self._customer_id = None
        self._lines = ()
        self._cache.clear()
        self._initial_load_done = True

    def _reconcile_with_remote(self, customer_id: str, always_write: bool) -> None:
        self._writer.cancel()
        self._initial_load_done = False
        self._customer_id = customer_id

        local = self._lines
        try:
            remote = self._remote.get_cart(customer_id)
        except Exception as exc:
            # Keep the device cart; it is synced on the next change
            logger.error("Failed to load persisted cart", customer_id=customer_id, error=str(exc))
            self._initial_load_done = True
            return

        merged = merge_carts(remote, local)
        if always_write or needs_remote_write(remote, local):
            self._remote.replace_cart(customer_id, merged)
            logger.info(
                "Persisted cart reconciled",
                customer_id=customer_id,
                line_count=len(merged),
                on_sign_in=always_write,
            )

        self._set_lines(merged, sync=False)
        self._initial_load_done = True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, product, quantity: int = 1) -> tuple[CartLine, ...]:
        self._set_lines(add_line(self._lines, product, quantity))
        return self._lines

    def update_quantity(self, product_id, delta: int) -> tuple[CartLine, ...]:
        self._set_lines(update_line_quantity(self._lines, product_id, delta))
        return self._lines

    def remove(self, product_id) -> tuple[CartLine, ...]:
        self._set_lines(remove_line(self._lines, product_id))
        return self._lines

    def clear(self) -> None:
        """Empty the cart on this device and, for a signed-in shopper, remotely."""
        self._writer.cancel()
        self._lines = ()
        self._cache.clear()
        if self._customer_id:
            self._remote.clear_cart(self._customer_id)

    def apply_stock_issues(self, issues) -> tuple[CartLine, ...]:
        """Cap quantities to what is available; drop lines with nothing left."""
        lines = self._lines
        for issue in issues:
            if find_line(lines, issue.product_id) is None:
                continue
            if issue.available <= 0:
                lines = remove_line(lines, issue.product_id)
            else:
                lines = tuple(
                    line_with(line, quantity=issue.available)
                    if str(line.product_id) == str(issue.product_id)
                    else line
                    for line in lines
                )
        self._set_lines(lines)
        return self._lines

    # ------------------------------------------------------------------
    # Remote sync
    # ------------------------------------------------------------------

    def poll(self) -> bool:
        """Called from the host loop; fires the debounced write when due."""
        return self._writer.poll()

    def flush(self) -> bool:
        return self._writer.flush()

    def _set_lines(self, lines, sync: bool = True) -> None:
        self._lines = tuple(lines)
        self._cache.save(self._lines)
        if sync and self._customer_id and self._initial_load_done:
            self._writer.schedule()

    def _write_remote(self) -> None:
        if self._customer_id:
            self._remote.replace_cart(self._customer_id, self._lines)
