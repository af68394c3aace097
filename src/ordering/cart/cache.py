"""Local cart cache — the device-side copy of the cart.

Written synchronously on every cart mutation so a reload never loses an
edit. Stored as a JSON document under a single key, the way a browser's
local storage holds it.
"""

import json
from abc import ABC, abstractmethod

import structlog
from protean.exceptions import ValidationError

from ordering.cart.line import CartLine

logger = structlog.get_logger(__name__)

CART_STORAGE_KEY = "storefront-cart"


class LocalCartCache(ABC):
    @abstractmethod
    def load(self) -> tuple[CartLine, ...]: ...

    @abstractmethod
    def save(self, lines) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class InMemoryCartCache(LocalCartCache):
    """Key/value cache holding the serialized cart."""

    def __init__(self, storage: dict[str, str] | None = None):
        self.storage: dict[str, str] = storage if storage is not None else {}
        self.writes = 0

    def load(self) -> tuple[CartLine, ...]:
        raw = self.storage.get(CART_STORAGE_KEY)
        if not raw:
            return ()
        try:
            return tuple(CartLine(**line) for line in json.loads(raw))
        except (ValueError, TypeError, ValidationError) as exc:
            # Unreadable cache is treated as an empty cart
            logger.warning("Discarding unreadable cart cache", error=str(exc))
            return ()

    def save(self, lines) -> None:
        self.storage[CART_STORAGE_KEY] = json.dumps([line.to_dict() for line in lines])
        self.writes += 1

    def clear(self) -> None:
        self.storage.pop(CART_STORAGE_KEY, None)
