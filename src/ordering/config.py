"""Checkout settings read from the environment.

Every knob has a default that matches the storefront's production setup, so
an empty environment yields a working (fake-adapter) checkout.
"""

import os
from dataclasses import dataclass, field

from ordering.tax import TaxConfig


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name)
    if value is None:
        return default
    return tuple(part.strip().upper() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class CheckoutSettings:
    tax_enabled: bool = True
    tax_default_rate: float = 0.07
    tax_nexus_states: tuple[str, ...] = field(default=("GA",))
    tax_label: str = "Sales Tax"
    payments_enabled: bool = True
    currency: str = "USD"
    cart_sync_debounce_seconds: float = 0.5
    lifetime_discount_percent: float = 10.0
    promo_code_ttl_minutes: int = 30
    pickup_lead_time_days: int = 3
    pickup_window_days: int = 14
    min_charge_amount: float = 0.50
    weight_per_unit_lbs: float = 0.5

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        defaults = cls()
        return cls(
            tax_enabled=_env_bool("TAX_ENABLED", defaults.tax_enabled),
            tax_default_rate=_env_float("TAX_DEFAULT_RATE", defaults.tax_default_rate),
            tax_nexus_states=_env_list("TAX_NEXUS_STATES", defaults.tax_nexus_states),
            tax_label=os.environ.get("TAX_LABEL", defaults.tax_label),
            payments_enabled=_env_bool("PAYMENTS_ENABLED", defaults.payments_enabled),
            currency=os.environ.get("CURRENCY", defaults.currency),
            cart_sync_debounce_seconds=_env_float("CART_SYNC_DEBOUNCE_SECONDS", defaults.cart_sync_debounce_seconds),
            lifetime_discount_percent=_env_float("LIFETIME_DISCOUNT_PERCENT", defaults.lifetime_discount_percent),
            promo_code_ttl_minutes=_env_int("PROMO_CODE_TTL_MINUTES", defaults.promo_code_ttl_minutes),
            pickup_lead_time_days=_env_int("PICKUP_LEAD_TIME_DAYS", defaults.pickup_lead_time_days),
            pickup_window_days=_env_int("PICKUP_WINDOW_DAYS", defaults.pickup_window_days),
            min_charge_amount=_env_float("MIN_CHARGE_AMOUNT", defaults.min_charge_amount),
            weight_per_unit_lbs=_env_float("WEIGHT_PER_UNIT_LBS", defaults.weight_per_unit_lbs),
        )

    def tax_config(self) -> TaxConfig:
        return TaxConfig(
            enabled=self.tax_enabled,
            default_rate=self.tax_default_rate,
            nexus_states=self.tax_nexus_states,
            label=self.tax_label,
        )


_current_settings: CheckoutSettings | None = None


def get_settings() -> CheckoutSettings:
    """Return the active settings, reading the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = CheckoutSettings.from_env()
    return _current_settings


def set_settings(settings: CheckoutSettings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    global _current_settings
    _current_settings = None
