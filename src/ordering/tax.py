"""Sales tax calculation.

A pure function of its inputs: no I/O, no clock, no settings lookup. The same
result is computed once for the checkout summary and again when the order is
committed, and the two must agree.

Decision order:
    tax disabled            -> 0, "Tax disabled"
    customer tax-exempt     -> 0, "Tax-exempt: <reason>"
    state outside nexus     -> 0, "Out of state (<state>)"
    otherwise               -> round(subtotal * rate, 2)
"""

from dataclasses import dataclass, field

from protean.fields import Boolean, Float, String

from ordering.domain import ordering
from shared.money import round_money


@dataclass(frozen=True)
class TaxConfig:
    enabled: bool = True
    default_rate: float = 0.07
    nexus_states: tuple[str, ...] = field(default=("GA",))
    label: str = "Sales Tax"


DEFAULT_TAX_CONFIG = TaxConfig()


@ordering.value_object
class TaxResult:
    """Tax owed on a subtotal, with a display label and an audit note for the order."""

    rate = Float(default=0.0)
    amount = Float(default=0.0)
    label = String(max_length=100)
    audit_note = String(max_length=255)
    is_taxable = Boolean(default=False)


def calculate_tax(
    subtotal: float,
    state: str | None,
    is_tax_exempt: bool = False,
    tax_exempt_reason: str | None = None,
    config: TaxConfig | None = None,
) -> TaxResult:
    config = config or DEFAULT_TAX_CONFIG

    if not config.enabled:
        return TaxResult(rate=0.0, amount=0.0, label="Tax", audit_note="Tax disabled", is_taxable=False)

    if is_tax_exempt:
        reason = tax_exempt_reason or "Tax-exempt"
        return TaxResult(
            rate=0.0,
            amount=0.0,
            label="Tax-exempt",
            audit_note=f"Tax-exempt: {reason}",
            is_taxable=False,
        )

    state_code = (state or "").strip().upper()
    in_nexus = any(s.strip().upper() == state_code for s in config.nexus_states)

    if not in_nexus:
        return TaxResult(
            rate=0.0,
            amount=0.0,
            label="No tax (out of state)" if state_code else "Tax",
            audit_note=f"Out of state ({state_code})" if state_code else "No state provided",
            is_taxable=False,
        )

    rate = config.default_rate
    percent = f"{rate * 100:.0f}%"
    return TaxResult(
        rate=rate,
        amount=round_money(subtotal * rate),
        label=f"{config.label} ({percent})",
        audit_note=f"{state_code} {percent}",
        is_taxable=True,
    )
