"""Shipping zones — per-state restrictions on where live plants can go.

A state is ``allowed``, ``blocked`` or ``conditional``. Conditional states
only accept fast services (``max_transit_days``) and may be closed for part
of the year (``blocked_months``); during a blocked month they behave as
blocked. States without a zone entry are allowed.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class ZoneStatus(Enum):
    ALLOWED = "allowed"
    BLOCKED = "blocked"
    CONDITIONAL = "conditional"


@dataclass(frozen=True)
class ShippingZone:
    state_code: str
    state_name: str
    status: str = ZoneStatus.ALLOWED.value
    customer_message: str | None = None
    max_transit_days: int | None = None
    blocked_months: tuple[int, ...] = ()
    surcharge_amount: float = 0.0
    surcharge_percent: float = 0.0


@dataclass(frozen=True)
class ZoneCheck:
    """Outcome of checking a destination state against the zone table."""

    allowed: bool
    status: str
    message: str | None = None
    max_transit_days: int | None = None
    surcharge_amount: float = 0.0
    surcharge_percent: float = 0.0
    conditions: dict = field(default_factory=dict)


_WINTER_MESSAGE = "Shipping to this state may be suspended during winter months (Dec-Feb) to protect plant health."

DEFAULT_ZONES = (
    ShippingZone(
        "AK",
        "Alaska",
        ZoneStatus.BLOCKED.value,
        "We cannot ship live plants to Alaska due to extreme transit times and weather conditions.",
    ),
    ShippingZone(
        "HI",
        "Hawaii",
        ZoneStatus.BLOCKED.value,
        "We cannot ship live plants to Hawaii due to agricultural import restrictions.",
    ),
    ShippingZone(
        "CA",
        "California",
        ZoneStatus.CONDITIONAL.value,
        "Shipping to California requires expedited shipping due to agricultural inspection delays.",
        max_transit_days=3,
    ),
    *(
        ShippingZone(code, name, ZoneStatus.CONDITIONAL.value, _WINTER_MESSAGE, 3, (12, 1, 2))
        for code, name in (
            ("MN", "Minnesota"),
            ("MT", "Montana"),
            ("ND", "North Dakota"),
            ("SD", "South Dakota"),
            ("WI", "Wisconsin"),
            ("WY", "Wyoming"),
        )
    ),
)


class ZoneTable:
    def __init__(self, zones=DEFAULT_ZONES):
        self._zones = {zone.state_code.upper(): zone for zone in zones}

    def upsert(self, zone: ShippingZone) -> None:
        self._zones[zone.state_code.upper()] = zone

    def get(self, state_code: str) -> ShippingZone | None:
        return self._zones.get((state_code or "").strip().upper())

    def check(self, state_code: str, today: date | None = None) -> ZoneCheck:
        zone = self.get(state_code)
        if zone is None or zone.status == ZoneStatus.ALLOWED.value:
            return ZoneCheck(allowed=True, status=ZoneStatus.ALLOWED.value)

        if zone.status == ZoneStatus.BLOCKED.value:
            return ZoneCheck(
                allowed=False,
                status=ZoneStatus.BLOCKED.value,
                message=zone.customer_message or f"We cannot ship to {zone.state_name} at this time.",
            )

        month = (today or date.today()).month
        if month in zone.blocked_months:
            return ZoneCheck(
                allowed=False,
                status=ZoneStatus.BLOCKED.value,
                message=zone.customer_message or f"Shipping to {zone.state_name} is temporarily suspended.",
            )

        conditions = {}
        if zone.max_transit_days:
            conditions["max_transit_days"] = zone.max_transit_days
        if zone.blocked_months:
            conditions["blocked_months"] = list(zone.blocked_months)

        return ZoneCheck(
            allowed=True,
            status=ZoneStatus.CONDITIONAL.value,
            message=zone.customer_message,
            max_transit_days=zone.max_transit_days,
            surcharge_amount=zone.surcharge_amount,
            surcharge_percent=zone.surcharge_percent,
            conditions=conditions,
        )
