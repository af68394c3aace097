"""Fake carrier adapter — deterministic carrier for testing and development.

Quotes a fixed service table scaled by total parcel weight. Address
verdicts and failures are configurable per test.
"""

from datetime import UTC, datetime, timedelta

from fulfillment.carrier.port import (
    AddressCheck,
    CarrierError,
    CarrierPort,
    ParcelSpec,
    ShippingAddress,
    ShippingRateOption,
)

# (carrier_id, carrier name, service, base amount, per-lb amount, transit days)
DEFAULT_SERVICES = (
    ("se-ups", "UPS", "UPS Ground", 9.50, 0.40, 5),
    ("se-usps", "USPS", "Priority Mail", 8.25, 0.35, 3),
    ("se-ups", "UPS", "UPS 2nd Day Air", 18.75, 0.90, 2),
    ("se-fedex", "FedEx", "FedEx Standard Overnight", 34.00, 1.50, 1),
)


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    def __init__(self, services=DEFAULT_SERVICES):
        self.services = tuple(services)
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.address_status = "verified"
        self.address_messages: tuple[str, ...] = ()
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Carrier unavailable",
        address_status: str = "verified",
        address_messages: tuple[str, ...] = (),
    ):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.address_status = address_status
        self.address_messages = tuple(address_messages)

    def set_flat_rates(self, rates: dict[str, float], transit_days: dict[str, int] | None = None):
        """Replace the service table with flat, weight-independent prices."""
        transit_days = transit_days or {}
        self.services = tuple(
            (f"se-{name.lower().replace(' ', '-')}", name.split()[0], name, amount, 0.0, transit_days.get(name))
            for name, amount in rates.items()
        )

    def validate_address(self, address: ShippingAddress) -> AddressCheck:
        self.calls.append({"method": "validate_address", "postal_code": address.postal_code})

        if self.address_status == "error":
            return AddressCheck(status="error", messages=self.address_messages or ("Address not found",))

        matched = ShippingAddress(
            name=address.name,
            address_line1=address.address_line1.upper(),
            address_line2=address.address_line2.upper() if address.address_line2 else None,
            city=address.city.upper(),
            state=address.state.upper(),
            postal_code=address.postal_code,
            country_code=address.country_code,
        )
        return AddressCheck(
            status=self.address_status,
            matched_address=matched,
            messages=self.address_messages,
            is_residential=True,
        )

    def get_rates(self, ship_to: ShippingAddress, parcels: list[ParcelSpec]) -> list[ShippingRateOption]:
        self.calls.append({"method": "get_rates", "postal_code": ship_to.postal_code, "parcels": len(parcels)})

        if not self.should_succeed:
            raise CarrierError(self.failure_reason)

        weight = sum(p.weight_lbs for p in parcels)
        today = datetime.now(UTC).date()
        rates = []
        for index, (carrier_id, carrier_name, service, base, per_lb, days) in enumerate(self.services):
            rates.append(
                ShippingRateOption(
                    rate_id=f"fake-rate-{index}",
                    carrier_id=carrier_id,
                    carrier_name=carrier_name,
                    service_name=service,
                    amount=round(base + per_lb * weight, 2),
                    transit_days=days,
                    estimated_delivery_date=today + timedelta(days=days) if days else None,
                )
            )
        return rates
