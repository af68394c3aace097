"""Domain events for the Order aggregate.

The Order is event sourced: these events are the order's history and the
only way its state changes. Every event is versioned and immutable.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was created from a checkout, pending payment.

    Carries the full line and pricing snapshot; nothing about the order is
    ever recomputed from the live cart afterwards.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    checkout_id = String()
    customer_id = Identifier()
    email = String(required=True)
    customer_name = String()
    phone = String()
    lines = Text(required=True)  # JSON: list of line dicts
    fulfillment_method = String(required=True)
    shipping_address = Text()  # JSON: address dict
    shipping_selection = Text()  # JSON: selected rate dict
    pickup = Text()  # JSON: pickup location/slot dict
    growing_system = String()
    subtotal = Float(required=True)
    discount_total = Float()
    discount_label = String()
    discount_source = String()
    promotion_id = String()
    promotion_code = String()
    shipping_cost = Float()
    tax_total = Float()
    tax_rate = Float()
    tax_note = String()
    grand_total = Float(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentIntentCreated:
    """A payment intent was opened for the order's amount due."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True)
    amount_charged = Float(required=True)
    credit_applied = Float()
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentAuthorized:
    """The payment for the order was confirmed by the gateway."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True)
    authorized_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """A payment attempt failed; the order stays pending and can be retried."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderFinalized:
    """The order is complete: paid (or manual-payment) and confirmed to the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    checkout_id = String()
    customer_id = Identifier()
    email = String(required=True)
    grand_total = Float(required=True)
    promotion_id = String()
    finalized_at = DateTime(required=True)
