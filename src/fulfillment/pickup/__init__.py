"""Pickup adapter registry: get_pickup() / set_pickup() / reset_pickup()."""

from fulfillment.pickup.fake_adapter import InMemoryPickup
from fulfillment.pickup.port import PickupPort

_pickup_instance: PickupPort | None = None


def get_pickup() -> PickupPort:
    """Return the active pickup adapter. Defaults to an empty InMemoryPickup."""
    global _pickup_instance
    if _pickup_instance is None:
        _pickup_instance = InMemoryPickup()
    return _pickup_instance


def set_pickup(pickup: PickupPort) -> None:
    global _pickup_instance
    _pickup_instance = pickup


def reset_pickup() -> None:
    global _pickup_instance
    _pickup_instance = None
