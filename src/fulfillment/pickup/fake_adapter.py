"""In-memory pickup schedule for development and testing."""

from dataclasses import replace
from uuid import uuid4

from fulfillment.pickup.port import PickupLocation, PickupPort, PickupSlot


class InMemoryPickup(PickupPort):
    def __init__(self):
        self.locations: dict[str, PickupLocation] = {}
        self.slots: dict[str, PickupSlot] = {}

    def add_location(self, location: PickupLocation) -> PickupLocation:
        self.locations[location.location_id] = location
        return location

    def add_slot(self, location_id, slot_date, start_time, end_time, capacity=None, booked_count=0) -> PickupSlot:
        slot = PickupSlot(
            schedule_id=str(uuid4()),
            location_id=location_id,
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            capacity=capacity,
            booked_count=booked_count,
        )
        self.slots[slot.schedule_id] = slot
        return slot

    def set_booked_count(self, schedule_id, booked_count) -> PickupSlot:
        slot = replace(self.slots[schedule_id], booked_count=booked_count)
        self.slots[schedule_id] = slot
        return slot

    def list_locations(self) -> list[PickupLocation]:
        return list(self.locations.values())

    def list_slots(self, location_id, start, end) -> list[PickupSlot]:
        return [
            slot
            for slot in self.slots.values()
            if slot.location_id == location_id and start <= slot.slot_date <= end
        ]
