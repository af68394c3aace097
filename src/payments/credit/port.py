"""Seedling credit service port.

Customers of the partner growing program hold at most one open credit.
The checkout asks the service whether a customer has credit (and whether
they are a lifetime member, which earns the membership discount), and
redeems the credit once the order is finalised.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CreditStatus:
    has_credit: bool = False
    credit_amount: float = 0.0
    credit_id: str | None = None
    is_lifetime: bool = False


@dataclass(frozen=True)
class CreditRedemption:
    redeemed: bool
    credit_id: str | None = None
    amount: float = 0.0
    error: str | None = None


class CreditService(ABC):
    @abstractmethod
    def check(self, email: str) -> CreditStatus:
        """Return the open credit (if any) for ``email``."""
        ...

    @abstractmethod
    def redeem(self, email: str, order_id: str) -> CreditRedemption:
        """Mark the open credit for ``email`` as spent on ``order_id``."""
        ...
