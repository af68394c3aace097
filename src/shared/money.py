"""Monetary rounding shared by pricing, tax, and payment code.

Amounts are carried as floats (matching the Float fields on aggregates), but
every figure that reaches a customer or a gateway is rounded half-up to whole
cents first.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round to cents, half-up (0.125 -> 0.13)."""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def to_cents(value: float) -> int:
    return int(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP) * 100)


def from_cents(cents: int) -> float:
    return float(Decimal(cents) / 100)
