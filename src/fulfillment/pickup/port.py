"""Pickup port — farm pickup locations and their bookable schedule slots."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, time


@dataclass(frozen=True)
class PickupLocation:
    location_id: str
    name: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    address_line2: str | None = None
    phone: str | None = None
    instructions: str | None = None
    is_active: bool = True
    sort_order: int = 0
    timezone: str = "America/New_York"


@dataclass(frozen=True)
class PickupSlot:
    """One bookable pickup window.

    ``capacity`` of ``None`` means the window takes any number of orders.
    """

    schedule_id: str
    location_id: str
    slot_date: date
    start_time: time
    end_time: time
    capacity: int | None = None
    booked_count: int = 0

    @property
    def slots_available(self) -> int | None:
        if self.capacity is None:
            return None
        return self.capacity - self.booked_count

    @property
    def is_selectable(self) -> bool:
        return self.capacity is None or self.slots_available > 0


class PickupPort(ABC):
    @abstractmethod
    def list_locations(self) -> list[PickupLocation]:
        """Every configured location, active or not."""
        ...

    @abstractmethod
    def list_slots(self, location_id: str, start: date, end: date) -> list[PickupSlot]:
        """Slots for ``location_id`` dated between ``start`` and ``end`` inclusive."""
        ...
