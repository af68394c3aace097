"""Carrier port — abstract interface for shipping carrier integrations.

The rate service programs against this port; adapters are swapped via
configuration. Results are plain frozen dataclasses so nothing
carrier-specific leaks past the adapter.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class ShippingAddress:
    address_line1: str
    city: str
    state: str
    postal_code: str
    name: str | None = None
    address_line2: str | None = None
    country_code: str = "US"


@dataclass(frozen=True)
class AddressCheck:
    """Carrier verdict on an address.

    ``status`` is one of ``verified``, ``unverified``, ``warning``, ``error``.
    """

    status: str
    matched_address: ShippingAddress | None = None
    messages: tuple[str, ...] = ()
    is_residential: bool | None = None


@dataclass(frozen=True)
class ParcelSpec:
    """One package handed to the carrier for rating."""

    weight_lbs: float
    length: float
    width: float
    height: float


@dataclass(frozen=True)
class ShippingRateOption:
    rate_id: str
    carrier_id: str
    carrier_name: str
    service_name: str
    amount: float
    currency: str = "USD"
    transit_days: int | None = None
    estimated_delivery_date: date | None = None
    extra: dict = field(default_factory=dict)


class CarrierError(Exception):
    """The carrier could not be reached or rejected the request."""


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def validate_address(self, address: ShippingAddress) -> AddressCheck:
        """Check (and possibly normalise) a destination address."""
        ...

    @abstractmethod
    def get_rates(self, ship_to: ShippingAddress, parcels: list[ParcelSpec]) -> list[ShippingRateOption]:
        """Quote every available service for shipping ``parcels`` to ``ship_to``.

        Raises:
            CarrierError: when no quote could be obtained.
        """
        ...
