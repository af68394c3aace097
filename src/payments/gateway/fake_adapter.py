"""Configurable fake payment gateway for development and testing.

Simulates intent creation and confirmation without external calls. The
outcome of each step can be configured at runtime, and every call is
recorded so tests can assert on amounts and idempotency keys.
"""

from uuid import uuid4

from payments.gateway.port import (
    ConfirmationOutcome,
    PaymentConfirmation,
    PaymentGateway,
    PaymentIntent,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.confirmation_outcome: ConfirmationOutcome = ConfirmationOutcome.SUCCEEDED
        self.calls: list[dict] = []
        self._intents_by_key: dict[str, PaymentIntent] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        confirmation_outcome: ConfirmationOutcome = ConfirmationOutcome.SUCCEEDED,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.confirmation_outcome = confirmation_outcome

    def create_intent(
        self,
        amount: float,
        currency: str,
        metadata: dict,
        idempotency_key: str,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
            }
        )

        if not self.should_succeed:
            return PaymentIntent(success=False, amount=amount, failure_reason=self.failure_reason)

        # Same key, same intent
        if idempotency_key in self._intents_by_key:
            return self._intents_by_key[idempotency_key]

        intent_id = f"fake_pi_{uuid4().hex[:12]}"
        intent = PaymentIntent(
            success=True,
            intent_id=intent_id,
            client_secret=f"{intent_id}_secret",
            amount=amount,
        )
        self._intents_by_key[idempotency_key] = intent
        return intent

    def confirm(self, client_secret: str) -> PaymentConfirmation:
        self.calls.append({"method": "confirm", "client_secret": client_secret})

        intent_id = client_secret.removesuffix("_secret")
        if self.confirmation_outcome == ConfirmationOutcome.ERROR:
            return PaymentConfirmation(
                outcome=ConfirmationOutcome.ERROR,
                intent_id=intent_id,
                message=self.failure_reason,
            )
        if self.confirmation_outcome == ConfirmationOutcome.REQUIRES_ACTION:
            return PaymentConfirmation(
                outcome=ConfirmationOutcome.REQUIRES_ACTION,
                intent_id=intent_id,
                message="Additional authentication required",
            )
        return PaymentConfirmation(outcome=ConfirmationOutcome.SUCCEEDED, intent_id=intent_id)
