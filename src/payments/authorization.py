"""Payment authorization: turn an order's amount due into a payment intent.

The amount sent in is the order's grand total (subtotal, minus the winning
discount, plus shipping and tax). Seedling credit claimed by the client is
never trusted: it is re-checked against the credit service here, and the
deduction is capped so the gateway is never asked to charge less than the
minimum charge.
"""

from dataclasses import dataclass

import structlog

from payments.credit import get_credit_service
from payments.gateway import get_gateway
from payments.gateway.port import PaymentIntent
from shared.money import from_cents, to_cents

logger = structlog.get_logger(__name__)

DEFAULT_MIN_CHARGE = 0.50


@dataclass(frozen=True)
class ChargeBreakdown:
    amount_due: float
    credit_applied: float
    charge_amount: float


def apply_credit(amount_due: float, verified_credit: float, min_charge: float = DEFAULT_MIN_CHARGE) -> ChargeBreakdown:
    """Deduct verified credit, keeping the charge at or above ``min_charge``.

    Works in whole cents so the breakdown always adds up exactly.
    """
    due_cents = to_cents(amount_due)
    max_deduction = max(0, due_cents - to_cents(min_charge))
    credit_cents = min(to_cents(max(verified_credit, 0.0)), max_deduction)
    return ChargeBreakdown(
        amount_due=from_cents(due_cents),
        credit_applied=from_cents(credit_cents),
        charge_amount=from_cents(due_cents - credit_cents),
    )


class PaymentAuthorizer:
    def __init__(self, gateway=None, credit_service=None, currency: str = "USD", min_charge: float = DEFAULT_MIN_CHARGE):
        self._gateway = gateway
        self._credit_service = credit_service
        self.currency = currency
        self.min_charge = min_charge

    @property
    def gateway(self):
        return self._gateway or get_gateway()

    @property
    def credit_service(self):
        return self._credit_service or get_credit_service()

    def verified_credit(self, email: str | None, use_credit: bool) -> float:
        if not use_credit or not email:
            return 0.0

        status = self.credit_service.check(email)
        if not status.has_credit:
            logger.warning("Seedling credit not verified, charging full amount", email=email)
            return 0.0
        return status.credit_amount

    def create_intent(
        self,
        order_id: str,
        order_number: str,
        amount_due: float,
        email: str | None = None,
        use_credit: bool = False,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        """Create the intent for ``order_id``; the order id is the idempotency key."""
        breakdown = apply_credit(amount_due, self.verified_credit(email, use_credit), self.min_charge)

        intent = self.gateway.create_intent(
            amount=breakdown.charge_amount,
            currency=self.currency,
            metadata={
                **(metadata or {}),
                "order_id": order_id,
                "order_number": order_number,
                "amount_due": f"{breakdown.amount_due:.2f}",
                "credit_applied": f"{breakdown.credit_applied:.2f}",
            },
            idempotency_key=f"order-{order_id}",
        )

        if not intent.success:
            logger.warning(
                "Payment intent failed",
                order_id=order_id,
                amount=breakdown.charge_amount,
                reason=intent.failure_reason,
            )
            return intent

        logger.info(
            "Payment intent created",
            order_id=order_id,
            intent_id=intent.intent_id,
            amount=breakdown.charge_amount,
            credit_applied=breakdown.credit_applied,
        )
        return PaymentIntent(
            success=True,
            intent_id=intent.intent_id,
            client_secret=intent.client_secret,
            amount=breakdown.charge_amount,
            credit_applied=breakdown.credit_applied,
        )
