"""Order aggregate (Event Sourced) — a placed checkout.

An order is created once per checkout attempt, before any money moves, with
a full snapshot of lines and pricing. Payment then moves it forward:

    PENDING → AUTHORIZED → FINALIZED
    PENDING → FINALIZED            (payments disabled / manual payment)

A failed payment leaves the order PENDING with ``payment_status`` "failed";
the customer can retry against the same order.
"""

import json
import secrets
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderFinalized,
    OrderPlaced,
    PaymentAuthorized,
    PaymentFailed,
    PaymentIntentCreated,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    AUTHORIZED = "Authorized"
    FINALIZED = "Finalized"


class PaymentStatus(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    FAILED = "failed"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.AUTHORIZED, OrderStatus.FINALIZED},
    OrderStatus.AUTHORIZED: {OrderStatus.FINALIZED},
    OrderStatus.FINALIZED: set(),  # Terminal
}


def generate_order_number(now: datetime | None = None) -> str:
    """``ORD-YYYYMMDD-XXXXXX``."""
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class DeliveryAddress:
    """Where a shipped order goes, as validated at checkout."""

    name = String(max_length=255)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=50)
    postal_code = String(required=True, max_length=20)
    country_code = String(max_length=2, default="US")


@ordering.value_object(part_of="Order")
class ShippingSelection:
    rate_id = String(required=True, max_length=100)
    carrier_name = String(max_length=100)
    service_name = String(max_length=255)
    amount = Float(default=0.0)
    transit_days = Integer()


@ordering.value_object(part_of="Order")
class PickupDetails:
    location_id = String(required=True, max_length=100)
    location_name = String(max_length=255)
    location_state = String(max_length=50)
    schedule_id = String(required=True, max_length=100)
    pickup_date = String(max_length=10)  # ISO date
    start_time = String(max_length=8)
    end_time = String(max_length=8)


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Financial snapshot locked at order creation.

    ``grand_total`` = max(subtotal - discount_total, 0) + shipping_cost + tax_total.
    """

    subtotal = Float(default=0.0)
    discount_total = Float(default=0.0)
    discount_label = String(max_length=255)
    shipping_cost = Float(default=0.0)
    tax_total = Float(default=0.0)
    tax_rate = Float(default=0.0)
    tax_note = String(max_length=255)
    grand_total = Float(default=0.0)
    currency = String(max_length=3, default="USD")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A copy of a cart line at the moment the order was placed."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    compare_at_price = Float()
    quantity = Integer(required=True, min_value=1)
    category = String(max_length=100)
    fulfillment_constraint = String(max_length=20)
    seedlings_per_unit = Integer(default=1)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@ordering.aggregate(is_event_sourced=True)
class Order:
    order_number = String(max_length=30)
    checkout_id = String(max_length=100)
    customer_id = Identifier()
    email = String(max_length=255)
    customer_name = String(max_length=255)
    phone = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    lines = HasMany(OrderLine)
    fulfillment_method = String(max_length=20)
    shipping_address = ValueObject(DeliveryAddress)
    shipping_selection = ValueObject(ShippingSelection)
    pickup = ValueObject(PickupDetails)
    growing_system = String(max_length=100)
    pricing = ValueObject(OrderPricing)
    discount_source = String(max_length=50)
    promotion_id = String(max_length=100)
    promotion_code = String(max_length=100)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_intent_id = String(max_length=255)
    amount_charged = Float()
    credit_applied = Float(default=0.0)
    payment_failure_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    finalized_at = DateTime()

    @property
    def is_guest(self) -> bool:
        return not self.customer_id

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        email,
        lines_data,
        fulfillment_method,
        pricing,
        customer_id=None,
        checkout_id=None,
        customer_name=None,
        phone=None,
        shipping_address=None,
        shipping_selection=None,
        pickup=None,
        growing_system=None,
        discount_source=None,
        promotion_id=None,
        promotion_code=None,
    ):
        """Place a new order from a checkout snapshot.

        All state is established by the OrderPlaced event's @apply handler.

        Args:
            lines_data: List of dicts with CartLine fields.
            pricing: Dict with OrderPricing fields.
            shipping_address / shipping_selection / pickup: Dicts or None.
        """
        if not lines_data:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        now = datetime.now(UTC)

        # Pre-generate line IDs for deterministic replay
        lines_with_ids = [{**line, "id": str(uuid4())} for line in lines_data]

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=generate_order_number(now),
                checkout_id=checkout_id,
                customer_id=str(customer_id) if customer_id else None,
                email=email,
                customer_name=customer_name,
                phone=phone,
                lines=json.dumps(lines_with_ids),
                fulfillment_method=fulfillment_method,
                shipping_address=json.dumps(shipping_address) if shipping_address else None,
                shipping_selection=json.dumps(shipping_selection) if shipping_selection else None,
                pickup=json.dumps(pickup) if pickup else None,
                growing_system=growing_system,
                subtotal=pricing.get("subtotal", 0.0),
                discount_total=pricing.get("discount_total", 0.0),
                discount_label=pricing.get("discount_label"),
                discount_source=discount_source,
                promotion_id=promotion_id,
                promotion_code=promotion_code,
                shipping_cost=pricing.get("shipping_cost", 0.0),
                tax_total=pricing.get("tax_total", 0.0),
                tax_rate=pricing.get("tax_rate", 0.0),
                tax_note=pricing.get("tax_note"),
                grand_total=pricing.get("grand_total", 0.0),
                currency=pricing.get("currency", "USD"),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _assert_pending(self):
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": [f"Payment cannot change once the order is {self.status}"]})

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def record_payment_intent(self, payment_intent_id, amount_charged, credit_applied=0.0):
        """Record the intent opened for this order (a retry replaces the previous one)."""
        self._assert_pending()
        self.raise_(
            PaymentIntentCreated(
                order_id=str(self.id),
                payment_intent_id=payment_intent_id,
                amount_charged=amount_charged,
                credit_applied=credit_applied or 0.0,
                created_at=datetime.now(UTC),
            )
        )

    def authorize_payment(self, payment_intent_id):
        self._assert_can_transition(OrderStatus.AUTHORIZED)
        if self.payment_intent_id and payment_intent_id != self.payment_intent_id:
            raise ValidationError({"payment_intent_id": ["Payment does not match the order's open intent"]})

        self.raise_(
            PaymentAuthorized(
                order_id=str(self.id),
                payment_intent_id=payment_intent_id,
                authorized_at=datetime.now(UTC),
            )
        )

    def fail_payment(self, reason):
        self._assert_pending()
        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                reason=reason,
                failed_at=datetime.now(UTC),
            )
        )

    def finalize(self, payment_required=True):
        """Complete the order. With payments enabled the payment must be authorized first."""
        self._assert_can_transition(OrderStatus.FINALIZED)
        if payment_required and OrderStatus(self.status) != OrderStatus.AUTHORIZED:
            raise ValidationError({"payment_status": ["Payment has not been authorized"]})

        self.raise_(
            OrderFinalized(
                order_id=str(self.id),
                order_number=self.order_number,
                checkout_id=self.checkout_id,
                customer_id=str(self.customer_id) if self.customer_id else None,
                email=self.email,
                grand_total=self.pricing.grand_total,
                promotion_id=self.promotion_id,
                finalized_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.order_number = event.order_number
        self.checkout_id = event.checkout_id
        self.customer_id = event.customer_id
        self.email = event.email
        self.customer_name = event.customer_name
        self.phone = event.phone
        self.status = OrderStatus.PENDING.value
        self.payment_status = PaymentStatus.PENDING.value
        self.fulfillment_method = event.fulfillment_method
        self.growing_system = event.growing_system
        self.discount_source = event.discount_source
        self.promotion_id = event.promotion_id
        self.promotion_code = event.promotion_code
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

        # Reconstruct lines from JSON (includes IDs for deterministic replay)
        lines_data = json.loads(event.lines) if isinstance(event.lines, str) else []
        self.lines = [OrderLine(**line_data) for line_data in lines_data]

        if event.shipping_address:
            self.shipping_address = DeliveryAddress(**json.loads(event.shipping_address))
        if event.shipping_selection:
            self.shipping_selection = ShippingSelection(**json.loads(event.shipping_selection))
        if event.pickup:
            self.pickup = PickupDetails(**json.loads(event.pickup))

        self.pricing = OrderPricing(
            subtotal=event.subtotal,
            discount_total=event.discount_total or 0.0,
            discount_label=event.discount_label,
            shipping_cost=event.shipping_cost or 0.0,
            tax_total=event.tax_total or 0.0,
            tax_rate=event.tax_rate or 0.0,
            tax_note=event.tax_note,
            grand_total=event.grand_total,
            currency=event.currency or "USD",
        )

    @apply
    def _on_payment_intent_created(self, event: PaymentIntentCreated):
        self.payment_intent_id = event.payment_intent_id
        self.amount_charged = event.amount_charged
        self.credit_applied = event.credit_applied or 0.0
        self.payment_status = PaymentStatus.PENDING.value
        self.payment_failure_reason = None
        self.updated_at = event.created_at

    @apply
    def _on_payment_authorized(self, event: PaymentAuthorized):
        self.status = OrderStatus.AUTHORIZED.value
        self.payment_intent_id = event.payment_intent_id
        self.payment_status = PaymentStatus.AUTHORIZED.value
        self.updated_at = event.authorized_at

    @apply
    def _on_payment_failed(self, event: PaymentFailed):
        self.payment_status = PaymentStatus.FAILED.value
        self.payment_failure_reason = event.reason
        self.updated_at = event.failed_at

    @apply
    def _on_order_finalized(self, event: OrderFinalized):
        self.status = OrderStatus.FINALIZED.value
        self.finalized_at = event.finalized_at
        self.updated_at = event.finalized_at
