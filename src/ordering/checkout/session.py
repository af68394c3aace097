"""Checkout session — the in-memory state of one checkout.

The session holds what the customer entered and what the checkout worked
out (discount, fulfillment, rate or slot, the order once created) and the
submission state:

    FORM → VALIDATING → STOCK_CHECK → PICKUP_CONFIRM | RATE_CONFIRM
         → ORDER_CREATE → [PAYMENT_AUTHORIZE → PAYMENT_CONFIRM] → FINALIZE
         → CONFIRMED | FAILED

Recoverable detours: STOCK_CONFLICT (adjust the cart, back to FORM) and
PAYMENT_FAILED (retry payment against the same order). CONFIRMED is only
entered after finalisation succeeds and admits no further transition, so a
repeated submit can never place a second order.
"""

from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError

from fulfillment.carrier.port import ShippingAddress
from ordering.checkout.fulfillment import FulfillmentMethod


class CheckoutState(Enum):
    FORM = "Form"
    VALIDATING = "Validating"
    STOCK_CHECK = "StockCheck"
    STOCK_CONFLICT = "StockConflict"
    PICKUP_CONFIRM = "PickupConfirm"
    RATE_CONFIRM = "RateConfirm"
    ORDER_CREATE = "OrderCreate"
    PAYMENT_AUTHORIZE = "PaymentAuthorize"
    PAYMENT_CONFIRM = "PaymentConfirm"
    PAYMENT_FAILED = "PaymentFailed"
    FINALIZE = "Finalize"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"


# State machine transition map
_VALID_TRANSITIONS = {
    CheckoutState.FORM: {CheckoutState.VALIDATING},
    CheckoutState.VALIDATING: {CheckoutState.FORM, CheckoutState.STOCK_CHECK},
    CheckoutState.STOCK_CHECK: {
        CheckoutState.STOCK_CONFLICT,
        CheckoutState.FORM,
        CheckoutState.PICKUP_CONFIRM,
        CheckoutState.RATE_CONFIRM,
    },
    CheckoutState.STOCK_CONFLICT: {CheckoutState.FORM},
    CheckoutState.PICKUP_CONFIRM: {CheckoutState.ORDER_CREATE, CheckoutState.FORM},
    CheckoutState.RATE_CONFIRM: {CheckoutState.ORDER_CREATE, CheckoutState.FORM},
    CheckoutState.ORDER_CREATE: {
        CheckoutState.PAYMENT_AUTHORIZE,
        CheckoutState.FINALIZE,
        CheckoutState.STOCK_CONFLICT,
        CheckoutState.FORM,
    },
    CheckoutState.PAYMENT_AUTHORIZE: {CheckoutState.PAYMENT_CONFIRM, CheckoutState.PAYMENT_FAILED},
    CheckoutState.PAYMENT_CONFIRM: {CheckoutState.FINALIZE, CheckoutState.PAYMENT_FAILED},
    CheckoutState.PAYMENT_FAILED: {CheckoutState.PAYMENT_AUTHORIZE},
    CheckoutState.FINALIZE: {CheckoutState.CONFIRMED, CheckoutState.FAILED},
    CheckoutState.CONFIRMED: set(),  # Terminal
    CheckoutState.FAILED: set(),  # Terminal
}

# A submit arriving in one of these states is a double-click or retry of a
# submission still in progress
IN_FLIGHT_STATES = {
    CheckoutState.VALIDATING,
    CheckoutState.STOCK_CHECK,
    CheckoutState.PICKUP_CONFIRM,
    CheckoutState.RATE_CONFIRM,
    CheckoutState.ORDER_CREATE,
    CheckoutState.PAYMENT_AUTHORIZE,
    CheckoutState.PAYMENT_CONFIRM,
    CheckoutState.FINALIZE,
}

# Checks that run before the order exists; a failure here returns to FORM
PRE_ORDER_STATES = {
    CheckoutState.VALIDATING,
    CheckoutState.STOCK_CHECK,
    CheckoutState.PICKUP_CONFIRM,
    CheckoutState.RATE_CONFIRM,
}

ADDRESS_FIELDS = ("address_line1", "address_line2", "city", "state", "postal_code")


@dataclass
class CheckoutForm:
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    growing_system: str = ""
    fulfillment_method: FulfillmentMethod | None = None
    is_tax_exempt: bool = False
    tax_exempt_reason: str = ""
    use_credit: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def shipping_address(self) -> ShippingAddress:
        return ShippingAddress(
            name=self.full_name or None,
            address_line1=self.address_line1.strip(),
            address_line2=self.address_line2.strip() or None,
            city=self.city.strip(),
            state=self.state.strip().upper(),
            postal_code=self.postal_code.strip(),
        )


@dataclass(frozen=True)
class PromoCodeMarker:
    code: str
    expires_at: datetime


class CheckoutSession:
    def __init__(self, session_id: str | None = None, customer_id: str | None = None, promo_code_ttl_minutes: int = 30):
        self.session_id = session_id or str(uuid4())
        self.customer_id = customer_id
        self.form = CheckoutForm()
        self.state = CheckoutState.FORM
        self.errors: dict[str, list[str]] = {}

        self.fulfillment = None
        self.discount = None
        self.pricing = None
        self.address_validation = None
        self.rate_quote = None
        self.selected_rate = None
        self.pickup_location = None
        self.pickup_slot = None
        self.stock_issues: tuple = ()
        self.order_ref = None
        self.payment_intent = None

        self.promo_code_ttl = timedelta(minutes=promo_code_ttl_minutes)
        self._promo_marker: PromoCodeMarker | None = None
        self._rate_ticket = 0

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def completed(self) -> bool:
        return self.state == CheckoutState.CONFIRMED

    @property
    def in_flight(self) -> bool:
        return self.state in IN_FLIGHT_STATES

    @property
    def order_placed(self) -> bool:
        return self.order_ref is not None

    def can_transition(self, target: CheckoutState) -> bool:
        return target in _VALID_TRANSITIONS.get(self.state, set())

    def transition_to(self, target: CheckoutState) -> None:
        if not self.can_transition(target):
            raise ValidationError({"state": [f"Cannot transition from {self.state.value} to {target.value}"]})
        self.state = target

    def report(self, messages: dict) -> None:
        """Keep failure messages for display next to the failing fields."""
        self.errors = {key: list(value) for key, value in messages.items()}

    # ------------------------------------------------------------------
    # Form editing
    # ------------------------------------------------------------------

    def update_form(self, **changes) -> None:
        """Set form fields; address fields go through ``update_address``."""
        address_changes = {k: v for k, v in changes.items() if k in ADDRESS_FIELDS}
        valid = {f.name for f in fields(CheckoutForm)}
        for name, value in changes.items():
            if name in ADDRESS_FIELDS:
                continue
            if name not in valid:
                raise ValidationError({name: ["Unknown checkout field"]})
            setattr(self.form, name, value)
        if address_changes:
            self.update_address(**address_changes)

    def update_address(self, **changes) -> bool:
        """Apply address edits. Any actual change drops the validated address,
        the quoted rates and the selected rate, and supersedes any rate request
        still in progress. Returns True when something changed."""
        changed = False
        for name, value in changes.items():
            if name not in ADDRESS_FIELDS:
                raise ValidationError({name: ["Not an address field"]})
            if getattr(self.form, name) != value:
                setattr(self.form, name, value)
                changed = True

        if changed:
            self.address_validation = None
            self.rate_quote = None
            self.selected_rate = None
            self._rate_ticket += 1
        return changed

    def choose_fulfillment_method(self, method: FulfillmentMethod) -> None:
        if self.fulfillment is not None and not self.fulfillment.allows(method):
            raise ValidationError({"fulfillment_method": [f"{method.value.title()} is not available for this cart"]})
        self.form.fulfillment_method = method

    @property
    def fulfillment_method(self) -> FulfillmentMethod | None:
        if self.fulfillment is not None and self.fulfillment.forced_method:
            return self.fulfillment.forced_method
        return self.form.fulfillment_method

    # ------------------------------------------------------------------
    # Rates (last request wins)
    # ------------------------------------------------------------------

    def begin_rate_request(self) -> int:
        self._rate_ticket += 1
        return self._rate_ticket

    def accept_rates(self, ticket: int, quote) -> bool:
        """Store a rate quote unless a newer request has started since ``ticket``."""
        if ticket != self._rate_ticket:
            return False

        self.rate_quote = quote
        if self.selected_rate is not None and quote.find(self.selected_rate.rate_id) is None:
            self.selected_rate = None
        return True

    def select_rate(self, rate_id: str) -> None:
        rate = self.rate_quote.find(rate_id) if self.rate_quote else None
        if rate is None:
            raise ValidationError({"shipping_rate": ["Selected shipping option is no longer available"]})
        self.selected_rate = rate

    # ------------------------------------------------------------------
    # Pickup
    # ------------------------------------------------------------------

    def select_pickup(self, location, slot) -> None:
        if slot.location_id != location.location_id:
            raise ValidationError({"pickup_slot": ["Slot does not belong to this location"]})
        if not slot.is_selectable:
            raise ValidationError({"pickup_slot": ["This pickup time is full"]})
        self.pickup_location = location
        self.pickup_slot = slot

    # ------------------------------------------------------------------
    # Promotion code marker
    # ------------------------------------------------------------------

    def remember_promo_code(self, code: str, now: datetime) -> None:
        self._promo_marker = PromoCodeMarker(code=code.strip(), expires_at=now + self.promo_code_ttl)

    def active_promo_code(self, now: datetime) -> str | None:
        if self._promo_marker is None:
            return None
        if now >= self._promo_marker.expires_at:
            self._promo_marker = None
            return None
        return self._promo_marker.code

    def forget_promo_code(self) -> None:
        self._promo_marker = None
