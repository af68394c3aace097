"""Payment gateway port (abstract interface).

The checkout creates a payment intent for the amount due and hands the
client secret to the hosted payment element, which collects card details
and confirms the intent. The core only ever sees the outcome.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class ConfirmationOutcome(Enum):
    """How the hosted payment element reported back."""

    SUCCEEDED = "succeeded"
    REQUIRES_ACTION = "requires_action"
    ERROR = "error"


@dataclass(frozen=True)
class PaymentIntent:
    """Result of a payment intent request."""

    success: bool
    intent_id: str | None = None
    client_secret: str | None = None
    amount: float = 0.0
    credit_applied: float = 0.0
    failure_reason: str | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    """Outcome of confirming an intent in the hosted payment element."""

    outcome: ConfirmationOutcome
    intent_id: str | None = None
    message: str | None = None
    metadata: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount: float,
        currency: str,
        metadata: dict,
        idempotency_key: str,
    ) -> PaymentIntent:
        """Create a payment intent for ``amount`` (in currency units, not cents)."""
        ...

    @abstractmethod
    def confirm(self, client_secret: str) -> PaymentConfirmation:
        """Confirm a previously created intent."""
        ...
