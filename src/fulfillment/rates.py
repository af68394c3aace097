"""Shipping rate service — address validation and rate quotes for checkout.

Sits between the checkout and the carrier port. It applies the zone table
(blocked destinations never reach the carrier; conditional ones lose slow
services), boxes the cart to rate real parcels, and always returns rates
cheapest first.
"""

from dataclasses import dataclass, replace
from datetime import date

import structlog

from fulfillment.carrier import get_carrier
from fulfillment.carrier.port import CarrierError, ParcelSpec, ShippingAddress, ShippingRateOption
from fulfillment.packages import DEFAULT_BOXES, PackageBreakdown, calculate_packages, physical_units
from fulfillment.zones import ZoneCheck, ZoneTable
from ordering.checkout.errors import ShippingUnavailable, ZoneBlocked

logger = structlog.get_logger(__name__)

RATE_FAILURE_MESSAGE = (
    "We were unable to calculate shipping rates for your address. Please try again or contact us for assistance."
)


@dataclass(frozen=True)
class AddressValidation:
    """``status`` is ``verified``, ``warning`` or ``blocked``."""

    status: str
    normalized_address: ShippingAddress | None = None
    messages: tuple[str, ...] = ()

    @property
    def is_blocked(self) -> bool:
        return self.status == "blocked"


@dataclass(frozen=True)
class RateQuote:
    rates: tuple[ShippingRateOption, ...]
    package_breakdown: PackageBreakdown
    zone: ZoneCheck

    def find(self, rate_id: str) -> ShippingRateOption | None:
        return next((rate for rate in self.rates if rate.rate_id == rate_id), None)


class ShippingRateService:
    def __init__(self, carrier=None, zones: ZoneTable | None = None, boxes=DEFAULT_BOXES, weight_per_unit: float = 0.5):
        self._carrier = carrier
        self.zones = zones or ZoneTable()
        self.boxes = tuple(boxes)
        self.weight_per_unit = weight_per_unit

    @property
    def carrier(self):
        return self._carrier or get_carrier()

    def validate_address(self, address: ShippingAddress, today: date | None = None) -> AddressValidation:
        zone = self.zones.check(address.state, today)
        if not zone.allowed:
            return AddressValidation(status="blocked", messages=(zone.message,) if zone.message else ())

        check = self.carrier.validate_address(address)
        if check.status == "verified":
            return AddressValidation(
                status="verified",
                normalized_address=check.matched_address or address,
                messages=check.messages,
            )
        if check.status in ("warning", "unverified"):
            return AddressValidation(
                status="warning",
                normalized_address=check.matched_address or address,
                messages=check.messages,
            )

        logger.info("Address rejected by carrier", postal_code=address.postal_code, messages=list(check.messages))
        return AddressValidation(status="blocked", messages=check.messages)

    def fetch_rates(self, address: ShippingAddress, lines, today: date | None = None) -> RateQuote:
        """Quote rates for shipping ``lines`` to ``address``.

        Raises:
            ZoneBlocked: the destination state cannot be served.
            ShippingUnavailable: the carrier returned nothing usable.
        """
        zone = self.zones.check(address.state, today)
        if not zone.allowed:
            logger.info("Shipping blocked by zone", state=address.state)
            raise ZoneBlocked(address.state, zone.message)

        breakdown = calculate_packages(physical_units(lines), self.weight_per_unit, self.boxes)
        parcels = [ParcelSpec(p.weight_lbs, p.length, p.width, p.height) for p in breakdown.packages]

        try:
            quoted = self.carrier.get_rates(address, parcels)
        except CarrierError as exc:
            logger.error("Rate fetch failed", state=address.state, error=str(exc))
            raise ShippingUnavailable(RATE_FAILURE_MESSAGE) from exc

        rates = []
        for rate in quoted:
            if zone.max_transit_days and rate.transit_days and rate.transit_days > zone.max_transit_days:
                continue
            rates.append(self._apply_surcharge(rate, zone))

        if not rates:
            raise ShippingUnavailable(RATE_FAILURE_MESSAGE)

        rates.sort(key=lambda r: r.amount)
        logger.info(
            "Shipping rates quoted",
            state=address.state,
            rate_count=len(rates),
            cheapest=rates[0].amount,
            packages=breakdown.total_packages,
        )
        return RateQuote(rates=tuple(rates), package_breakdown=breakdown, zone=zone)

    @staticmethod
    def _apply_surcharge(rate: ShippingRateOption, zone: ZoneCheck) -> ShippingRateOption:
        if not zone.surcharge_amount and not zone.surcharge_percent:
            return rate
        amount = (rate.amount + zone.surcharge_amount) * (1 + zone.surcharge_percent / 100)
        return replace(rate, amount=round(amount, 2))
