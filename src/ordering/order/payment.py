"""Order payment — commands and handler.

Handles the payment lifecycle of a pending order: intent opened,
authorized, or failed (the order stays pending for a retry), and the
final step that completes the order.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordPaymentIntent:
    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)
    amount_charged = Float(required=True)
    credit_applied = Float(default=0.0)


@ordering.command(part_of="Order")
class AuthorizePayment:
    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)


@ordering.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@ordering.command(part_of="Order")
class FinalizeOrder:
    order_id = Identifier(required=True)
    payment_required = Boolean(default=True)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordPaymentIntent)
    def record_payment_intent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_intent(
            payment_intent_id=command.payment_intent_id,
            amount_charged=command.amount_charged,
            credit_applied=command.credit_applied,
        )
        repo.add(order)

    @handle(AuthorizePayment)
    def authorize_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.authorize_payment(payment_intent_id=command.payment_intent_id)
        repo.add(order)

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.fail_payment(reason=command.reason)
        repo.add(order)

    @handle(FinalizeOrder)
    def finalize_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.finalize(payment_required=command.payment_required)
        repo.add(order)
