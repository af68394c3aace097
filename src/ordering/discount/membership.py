"""Lifetime membership discount — a flat percentage for lifetime members.

Membership is looked up server-side through the credit service, never
taken from the client.
"""

from ordering.discount.candidate import DiscountCandidate, DiscountSource
from shared.money import round_money


def membership_candidate(subtotal: float, status, percent: float = 10.0) -> DiscountCandidate | None:
    """Candidate for a customer whose credit status marks them lifetime."""
    if status is None or not status.is_lifetime or subtotal <= 0:
        return None
    return DiscountCandidate(
        source=DiscountSource.LIFETIME_MEMBERSHIP,
        amount=round_money(subtotal * percent / 100),
        label=f"Lifetime member discount ({percent:g}%)",
    )
