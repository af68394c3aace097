"""Discount candidates and the non-stacking reduction.

Each discount source produces at most one candidate. Exactly one candidate
is ever applied: the one with the largest amount, ties going to a manual
code over an automatic promotion over the membership discount. A candidate
worth nothing is only eligible when it carries free shipping.
"""

from dataclasses import dataclass
from enum import Enum

from shared.money import round_money


class DiscountSource(Enum):
    LIFETIME_MEMBERSHIP = "lifetimeMembership"
    AUTO_PROMOTION = "autoPromotion"
    MANUAL_PROMOTION_CODE = "manualPromotionCode"


_TIE_BREAK_RANK = {
    DiscountSource.MANUAL_PROMOTION_CODE: 3,
    DiscountSource.AUTO_PROMOTION: 2,
    DiscountSource.LIFETIME_MEMBERSHIP: 1,
}


@dataclass(frozen=True)
class DiscountCandidate:
    source: DiscountSource
    amount: float
    label: str
    free_shipping: bool = False
    promotion_id: str | None = None
    promotion_code: str | None = None

    @property
    def is_eligible(self) -> bool:
        return self.amount > 0 or self.free_shipping

    @property
    def rank(self) -> tuple[float, int]:
        return round_money(self.amount), _TIE_BREAK_RANK[self.source]


@dataclass(frozen=True)
class CodeRejection:
    """A promotion code that cannot be applied, with the reason shown to the customer."""

    message: str
    code: str | None = None
    valid: bool = False


def resolve_best(candidates) -> DiscountCandidate | None:
    eligible = [c for c in candidates if c is not None and c.is_eligible]
    if not eligible:
        return None
    return max(eligible, key=lambda c: c.rank)
