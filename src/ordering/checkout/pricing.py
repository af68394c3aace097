"""Checkout pricing summary.

    total = max(subtotal - discount, 0) + shipping + tax

Tax is charged on the undiscounted subtotal. Shipping is zero for pickup
and when the winning discount carries free shipping. The same function
produces the figure shown to the customer and the snapshot written to the
order, so the two cannot disagree.
"""

from dataclasses import dataclass

from ordering.cart.line import lines_item_count, lines_subtotal
from ordering.checkout.fulfillment import FulfillmentMethod
from ordering.tax import TaxConfig, TaxResult, calculate_tax
from shared.money import round_money


@dataclass(frozen=True)
class PricingSummary:
    subtotal: float
    item_count: int
    discount_amount: float
    discount_label: str | None
    discount_source: str | None
    free_shipping: bool
    shipping_cost: float
    tax: TaxResult
    total: float
    currency: str = "USD"

    def as_order_pricing(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "discount_total": self.discount_amount,
            "discount_label": self.discount_label,
            "shipping_cost": self.shipping_cost,
            "tax_total": self.tax.amount,
            "tax_rate": self.tax.rate,
            "tax_note": self.tax.audit_note,
            "grand_total": self.total,
            "currency": self.currency,
        }


def compute_pricing(
    lines,
    discount=None,
    fulfillment_method: FulfillmentMethod | None = None,
    shipping_rate_amount: float | None = None,
    tax_state: str | None = None,
    is_tax_exempt: bool = False,
    tax_exempt_reason: str | None = None,
    tax_config: TaxConfig | None = None,
    currency: str = "USD",
) -> PricingSummary:
    subtotal = round_money(lines_subtotal(lines))
    winner = discount.winner if discount else None

    discount_amount = round_money(min(winner.amount, subtotal)) if winner and winner.amount > 0 else 0.0
    free_shipping = bool(winner and winner.free_shipping)

    if fulfillment_method == FulfillmentMethod.PICKUP or free_shipping:
        shipping_cost = 0.0
    else:
        shipping_cost = round_money(shipping_rate_amount or 0.0)

    tax = calculate_tax(subtotal, tax_state, is_tax_exempt, tax_exempt_reason, tax_config)
    total = round_money(max(subtotal - discount_amount, 0.0) + shipping_cost + tax.amount)

    return PricingSummary(
        subtotal=subtotal,
        item_count=lines_item_count(lines),
        discount_amount=discount_amount,
        discount_label=winner.label if discount_amount > 0 else None,
        discount_source=winner.source.value if winner else None,
        free_shipping=free_shipping,
        shipping_cost=shipping_cost,
        tax=tax,
        total=total,
        currency=currency,
    )
