"""Pickup slot service — what the checkout offers for farm pickup.

Only active locations are listed. Slots default to a window that opens
``lead_time_days`` from today (the farm needs time to pull orders) and
closes ``window_days`` from today. "Today" is the farm's: slot dates and
times are local to the pickup location, so the clock is converted to the
location's timezone first. Slots that already ended today are dropped; full
slots are still returned so they can be shown as unavailable.
"""

from datetime import date, datetime, timedelta
from itertools import groupby
from zoneinfo import ZoneInfo

import structlog

from fulfillment.pickup import get_pickup
from fulfillment.pickup.port import PickupLocation, PickupSlot

logger = structlog.get_logger(__name__)


class PickupSlotService:
    def __init__(self, pickup=None, lead_time_days: int = 3, window_days: int = 14):
        self._pickup = pickup
        self.lead_time_days = lead_time_days
        self.window_days = window_days

    @property
    def pickup(self):
        return self._pickup or get_pickup()

    def list_locations(self) -> list[PickupLocation]:
        active = [loc for loc in self.pickup.list_locations() if loc.is_active]
        return sorted(active, key=lambda loc: (loc.sort_order, loc.name))

    def get_location(self, location_id: str) -> PickupLocation | None:
        return next((loc for loc in self.list_locations() if loc.location_id == str(location_id)), None)

    def default_range(self, today: date) -> tuple[date, date]:
        return today + timedelta(days=self.lead_time_days), today + timedelta(days=self.window_days)

    def list_slots(
        self,
        location_id: str,
        start: date | None = None,
        end: date | None = None,
        now: datetime | None = None,
    ) -> list[PickupSlot]:
        now = self.local_now(location_id, now)
        default_start, default_end = self.default_range(now.date())
        start = start or default_start
        end = end or default_end

        slots = [
            slot
            for slot in self.pickup.list_slots(str(location_id), start, end)
            if not (slot.slot_date == now.date() and slot.end_time <= now.time())
        ]
        slots.sort(key=lambda slot: (slot.slot_date, slot.start_time))
        logger.debug("Pickup slots listed", location_id=str(location_id), count=len(slots))
        return slots

    def local_now(self, location_id: str, now: datetime | None = None) -> datetime:
        """The location's wall-clock time. A naive ``now`` is taken as already local."""
        location = next((loc for loc in self.pickup.list_locations() if loc.location_id == str(location_id)), None)
        tz = ZoneInfo(location.timezone) if location else None
        if now is None:
            return datetime.now(tz)
        if now.tzinfo is None or tz is None:
            return now
        return now.astimezone(tz)

    def find_slot(self, location_id: str, schedule_id: str, now: datetime | None = None) -> PickupSlot | None:
        return next(
            (slot for slot in self.list_slots(location_id, now=now) if slot.schedule_id == str(schedule_id)),
            None,
        )


def group_slots_by_date(slots) -> dict[date, list[PickupSlot]]:
    """Group already-sorted slots by date, preserving order."""
    return {slot_date: list(group) for slot_date, group in groupby(slots, key=lambda slot: slot.slot_date)}
