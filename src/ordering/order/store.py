"""Order persistence port used by the checkout.

``create_order`` takes the checkout snapshot and returns the new order's
id and number; ``update_order`` applies a patch for one payment step. The
domain-backed store dispatches commands to the Order aggregate.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.order.payment import AuthorizePayment, FinalizeOrder, RecordPaymentFailure, RecordPaymentIntent
from ordering.order.placement import PlaceOrder

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderRef:
    order_id: str
    order_number: str


class OrderStore(ABC):
    @abstractmethod
    def create_order(self, snapshot: dict) -> OrderRef:
        """Persist a pending order from a checkout snapshot.

        Raises:
            ValidationError: the snapshot was rejected (including insufficient stock).
        """
        ...

    @abstractmethod
    def update_order(self, order_id: str, patch: dict) -> None:
        """Apply one payment-lifecycle patch.

        Recognised patches:
            {"payment_intent_id", "amount_charged", "credit_applied"}
            {"payment_status": "authorized", "payment_intent_id"}
            {"payment_status": "failed", "reason"}
            {"status": "finalized", "payment_required"}
        """
        ...

    @abstractmethod
    def get_order(self, order_id: str) -> Order:
        ...


class DomainOrderStore(OrderStore):
    def create_order(self, snapshot: dict) -> OrderRef:
        fields = dict(snapshot)
        for key in ("lines", "shipping_address", "shipping_selection", "pickup"):
            if fields.get(key) is not None and not isinstance(fields[key], str):
                fields[key] = json.dumps(fields[key])

        order_id = current_domain.process(PlaceOrder(**fields), asynchronous=False)
        order = self.get_order(order_id)
        return OrderRef(order_id=str(order.id), order_number=order.order_number)

    def update_order(self, order_id: str, patch: dict) -> None:
        if patch.get("status") == "finalized":
            command = FinalizeOrder(order_id=order_id, payment_required=patch.get("payment_required", True))
        elif patch.get("payment_status") == "authorized":
            command = AuthorizePayment(order_id=order_id, payment_intent_id=patch["payment_intent_id"])
        elif patch.get("payment_status") == "failed":
            command = RecordPaymentFailure(order_id=order_id, reason=patch.get("reason") or "Payment failed")
        elif "payment_intent_id" in patch:
            command = RecordPaymentIntent(
                order_id=order_id,
                payment_intent_id=patch["payment_intent_id"],
                amount_charged=patch["amount_charged"],
                credit_applied=patch.get("credit_applied", 0.0),
            )
        else:
            raise ValidationError({"patch": [f"Unsupported order update: {sorted(patch)}"]})

        current_domain.process(command, asynchronous=False)

    def get_order(self, order_id: str) -> Order:
        return current_domain.repository_for(Order).get(order_id)
