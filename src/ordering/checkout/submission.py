"""Checkout submission — drives a CheckoutSession from the form to a confirmed order.

Flow of ``submit``:

1. Validate the form: contact fields, fulfillment conflict, growing system,
   and a shipping rate or pickup slot for the chosen method.
2. Re-check stock against the catalog. Shortfalls stop the checkout in
   STOCK_CONFLICT so the customer can adjust the cart.
3. Re-confirm the selected rate or pickup slot.
4. Recompute pricing server-side and create the order. Stock is committed
   here; a late sell-out surfaces as a stock conflict.
5. With payments enabled, create a payment intent (credit applied) and wait
   for the client to confirm it. Without payments, finalise immediately.

``confirm_payment`` takes the gateway's confirmation and finalises. The
session only reaches CONFIRMED once the order is finalised; anything that
happens after that (credit redemption, cart clear, promotion usage, email)
is best effort and logged on failure.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from fulfillment.rates import RateQuote, ShippingRateService
from fulfillment.slots import PickupSlotService
from notifications.order_confirmation import send_order_confirmation
from ordering.checkout.abandonment import capture_abandoned_cart, is_valid_email
from ordering.checkout.errors import (
    FinalizationError,
    OrderCreateError,
    PaymentError,
    StockConflict,
)
from ordering.checkout.fulfillment import CONFLICT_MESSAGE, FulfillmentMethod, resolve_fulfillment
from ordering.checkout.pricing import PricingSummary, compute_pricing
from ordering.checkout.session import PRE_ORDER_STATES, CheckoutSession, CheckoutState
from ordering.config import get_settings
from ordering.discount.management import RecordPromotionUsage
from ordering.discount.resolver import DiscountResolution, DiscountResolver
from ordering.order.store import DomainOrderStore, OrderRef
from ordering.stock import StockValidator
from ordering.utils.logging import bind_checkout_context, clear_checkout_context
from payments.authorization import PaymentAuthorizer
from payments.credit import get_credit_service
from payments.gateway import get_gateway
from payments.gateway.port import ConfirmationOutcome, PaymentConfirmation

logger = structlog.get_logger(__name__)

PAYMENT_FAILED_MESSAGE = "Your payment could not be processed. Please try again or use a different card."
CHECK_FAILED_MESSAGE = "We could not check your order right now. Please try again."


@dataclass(frozen=True)
class SubmissionResult:
    state: CheckoutState
    order_id: str | None = None
    order_number: str | None = None
    client_secret: str | None = None
    amount_charged: float | None = None
    duplicate: bool = False
    requires_action: bool = False

    @property
    def completed(self) -> bool:
        return self.state == CheckoutState.CONFIRMED


class CheckoutService:
    def __init__(
        self,
        cart_store,
        settings=None,
        rate_service: ShippingRateService | None = None,
        pickup_service: PickupSlotService | None = None,
        discount_resolver: DiscountResolver | None = None,
        stock_validator: StockValidator | None = None,
        order_store=None,
        authorizer: PaymentAuthorizer | None = None,
        clock=None,
    ):
        self.cart = cart_store
        self.settings = settings or get_settings()
        self.rate_service = rate_service or ShippingRateService(weight_per_unit=self.settings.weight_per_unit_lbs)
        self.pickup_service = pickup_service or PickupSlotService(
            lead_time_days=self.settings.pickup_lead_time_days,
            window_days=self.settings.pickup_window_days,
        )
        self.discount_resolver = discount_resolver or DiscountResolver(
            lifetime_percent=self.settings.lifetime_discount_percent
        )
        self.stock_validator = stock_validator or StockValidator()
        self.order_store = order_store or DomainOrderStore()
        self.authorizer = authorizer or PaymentAuthorizer(
            currency=self.settings.currency, min_charge=self.settings.min_charge_amount
        )
        self._clock = clock or (lambda: datetime.now(UTC))

    def now(self) -> datetime:
        return self._clock()

    def new_session(self, session_id: str | None = None) -> CheckoutSession:
        session = CheckoutSession(
            session_id=session_id,
            customer_id=self.cart.customer_id,
            promo_code_ttl_minutes=self.settings.promo_code_ttl_minutes,
        )
        self.refresh(session)
        return session

    # ------------------------------------------------------------------
    # Live summary
    # ------------------------------------------------------------------

    def refresh(self, session: CheckoutSession) -> PricingSummary:
        """Recompute fulfillment, discount and pricing from the current cart.

        Once the order exists its pricing is fixed; the session keeps the
        figures the order was created with.
        """
        if session.order_placed:
            return session.pricing

        lines = self.cart.lines
        session.fulfillment = resolve_fulfillment(lines)
        if session.fulfillment.forced_method:
            session.form.fulfillment_method = session.fulfillment.forced_method

        session.discount = self._resolve_discount(session, lines)
        session.pricing = self._price(session, lines, session.discount)
        return session.pricing

    def apply_promo_code(self, session: CheckoutSession, code: str) -> DiscountResolution:
        """Try a promotion code. A rejected code is reported and forgotten."""
        self._ensure_repriceable(session)
        session.remember_promo_code(code, self.now())
        self.refresh(session)

        rejection = session.discount.code_rejection
        if rejection:
            session.forget_promo_code()
            session.errors["promo_code"] = [rejection.message]
            self.refresh(session)
        else:
            session.errors.pop("promo_code", None)
        return session.discount

    def remove_promo_code(self, session: CheckoutSession) -> DiscountResolution:
        self._ensure_repriceable(session)
        session.forget_promo_code()
        session.errors.pop("promo_code", None)
        self.refresh(session)
        return session.discount

    def _resolve_discount(self, session: CheckoutSession, lines) -> DiscountResolution:
        return self.discount_resolver.resolve(
            lines,
            customer_id=session.customer_id,
            email=session.form.email or None,
            code=session.active_promo_code(self.now()),
        )

    def _tax_state(self, session: CheckoutSession) -> str | None:
        if session.fulfillment_method == FulfillmentMethod.PICKUP:
            if session.pickup_location is not None:
                return session.pickup_location.state
            # Pickup is always local
            nexus = self.settings.tax_nexus_states
            return nexus[0] if nexus else None
        return session.form.state.strip().upper() or None

    def _price(self, session: CheckoutSession, lines, discount) -> PricingSummary:
        rate = session.selected_rate
        return compute_pricing(
            lines,
            discount=discount,
            fulfillment_method=session.fulfillment_method,
            shipping_rate_amount=rate.amount if rate else None,
            tax_state=self._tax_state(session),
            is_tax_exempt=session.form.is_tax_exempt,
            tax_exempt_reason=session.form.tax_exempt_reason or None,
            tax_config=self.settings.tax_config(),
            currency=self.settings.currency,
        )

    # ------------------------------------------------------------------
    # Shipping and pickup
    # ------------------------------------------------------------------

    def validate_address(self, session: CheckoutSession):
        session.address_validation = self.rate_service.validate_address(
            session.form.shipping_address(), today=self.now().date()
        )
        return session.address_validation

    def quote_rates(self, session: CheckoutSession) -> RateQuote | None:
        """Fetch rates for the current address. Returns None if the quote was
        superseded by an address change or a newer request."""
        ticket = session.begin_rate_request()
        quote = self.rate_service.fetch_rates(session.form.shipping_address(), self.cart.lines, today=self.now().date())
        if not session.accept_rates(ticket, quote):
            logger.debug("Discarded stale rate quote", session_id=session.session_id)
            return None
        self.refresh(session)
        return quote

    def select_rate(self, session: CheckoutSession, rate_id: str) -> PricingSummary:
        self._ensure_repriceable(session)
        session.select_rate(rate_id)
        return self.refresh(session)

    def select_pickup(self, session: CheckoutSession, location_id: str, schedule_id: str) -> PricingSummary:
        self._ensure_repriceable(session)
        location = self.pickup_service.get_location(location_id)
        if location is None:
            raise ValidationError({"pickup_location": ["Pickup location not found"]})
        slot = self.pickup_service.find_slot(location_id, schedule_id, now=self.now())
        if slot is None:
            raise ValidationError({"pickup_slot": ["Pickup time not available"]})

        session.select_pickup(location, slot)
        return self.refresh(session)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, session: CheckoutSession) -> SubmissionResult:
        """Submit the checkout.

        Raises:
            ValidationError: the form is incomplete or a selection went stale.
            StockConflict: some lines exceed available stock.
            OrderCreateError: the order could not be created.
            PaymentError: the payment intent could not be created.

        Any other failure before the order is created returns the session to
        FORM with a message and is re-raised.
        """
        if session.completed:
            logger.info("Checkout already confirmed", session_id=session.session_id)
            return self._result(session, duplicate=True)
        if session.in_flight:
            logger.info("Ignoring submit while in flight", session_id=session.session_id, state=session.state.value)
            return self._result(session, duplicate=True)

        bind_checkout_context(session_id=session.session_id)
        try:
            if session.state == CheckoutState.PAYMENT_FAILED:
                # The order already exists; only payment is retried
                return self._authorize(session)
            if session.state == CheckoutState.STOCK_CONFLICT:
                session.transition_to(CheckoutState.FORM)

            session.errors = {}
            session.transition_to(CheckoutState.VALIDATING)
            try:
                lines = self._check(session)
            except Exception as exc:
                if session.state in PRE_ORDER_STATES:
                    logger.error(
                        "Checkout check failed", session_id=session.session_id, state=session.state.value, error=str(exc)
                    )
                    session.report({"checkout": [CHECK_FAILED_MESSAGE]})
                    session.transition_to(CheckoutState.FORM)
                raise

            session.transition_to(CheckoutState.ORDER_CREATE)
            self._create_order(session, lines)

            if not self.settings.payments_enabled:
                session.transition_to(CheckoutState.FINALIZE)
                return self._finalize(session, payment_required=False)

            return self._authorize(session)
        finally:
            clear_checkout_context()

    def confirm_payment(
        self, session: CheckoutSession, confirmation: PaymentConfirmation | None = None
    ) -> SubmissionResult:
        """Apply the client's payment confirmation.

        Without an explicit ``confirmation`` the gateway is asked to confirm
        the session's intent.

        Raises:
            PaymentError: the payment was declined.
            FinalizationError: payment succeeded but the order could not be finalised.
        """
        if session.completed:
            return self._result(session, duplicate=True)
        if session.state != CheckoutState.PAYMENT_CONFIRM:
            raise ValidationError({"state": [f"No payment awaiting confirmation (state {session.state.value})"]})

        if confirmation is None:
            confirmation = get_gateway().confirm(session.payment_intent.client_secret)

        order_id = session.order_ref.order_id
        if confirmation.outcome == ConfirmationOutcome.REQUIRES_ACTION:
            logger.info("Payment requires customer action", order_id=order_id)
            return self._result(session, requires_action=True)

        if confirmation.outcome == ConfirmationOutcome.ERROR:
            return self._payment_failed(session, confirmation.message or PAYMENT_FAILED_MESSAGE)

        self.order_store.update_order(
            order_id,
            {"payment_status": "authorized", "payment_intent_id": confirmation.intent_id or session.payment_intent.intent_id},
        )
        session.transition_to(CheckoutState.FINALIZE)
        return self._finalize(session, payment_required=True)

    def adjust_cart_for_stock(self, session: CheckoutSession):
        """Cap the cart to available stock and return to the form."""
        lines = self.cart.apply_stock_issues(session.stock_issues)
        session.stock_issues = ()
        session.errors.pop("stock", None)
        if session.state == CheckoutState.STOCK_CONFLICT:
            session.transition_to(CheckoutState.FORM)
        self.refresh(session)
        return lines

    def capture_abandoned(self, session: CheckoutSession) -> bool:
        if session.completed or not is_valid_email(session.form.email) or not self.cart.lines:
            return False
        return capture_abandoned_cart(
            session.session_id,
            session.form.email,
            self.cart.lines,
            customer_id=session.customer_id,
            first_name=session.form.first_name or None,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check(self, session: CheckoutSession):
        """Validate, check stock and re-confirm the rate or slot. Returns the
        lines the order will be created from."""
        self.capture_abandoned(session)

        lines = self.cart.lines
        self.refresh(session)
        errors = self._validate(session, lines)
        if errors:
            self._back_to_form(session, errors)

        session.transition_to(CheckoutState.STOCK_CHECK)
        issues = self.stock_validator.check(lines)
        if issues:
            self._stock_conflict(session, issues)

        if session.fulfillment_method == FulfillmentMethod.PICKUP:
            session.transition_to(CheckoutState.PICKUP_CONFIRM)
            errors = self._confirm_pickup(session)
        else:
            session.transition_to(CheckoutState.RATE_CONFIRM)
            errors = self._confirm_rate(session)
        if errors:
            self._back_to_form(session, errors)
        return lines

    def _validate(self, session: CheckoutSession, lines) -> dict[str, list[str]]:
        form = session.form
        errors: dict[str, list[str]] = {}

        if not lines:
            errors["cart"] = ["Your cart is empty"]
        if not is_valid_email(form.email):
            errors["email"] = ["Please enter a valid email address"]
        if not form.first_name.strip():
            errors["first_name"] = ["First name is required"]
        if not form.last_name.strip():
            errors["last_name"] = ["Last name is required"]
        if not form.growing_system:
            errors["growing_system"] = ["Please select your growing system"]

        resolution = session.fulfillment
        if resolution.conflict:
            errors["fulfillment"] = [CONFLICT_MESSAGE]
            return errors

        method = session.fulfillment_method
        if method is None:
            errors["fulfillment_method"] = ["Please choose shipping or pickup"]
        elif not resolution.allows(method):
            errors["fulfillment_method"] = [f"{method.value.title()} is not available for this cart"]
        elif method == FulfillmentMethod.SHIPPING:
            errors.update(self._validate_shipping(session))
        elif session.pickup_location is None or session.pickup_slot is None:
            errors["pickup_slot"] = ["Please select a pickup time"]

        return errors

    def _validate_shipping(self, session: CheckoutSession) -> dict[str, list[str]]:
        form = session.form
        errors = {}
        for name, label in (
            ("address_line1", "Street address"),
            ("city", "City"),
            ("state", "State"),
            ("postal_code", "ZIP code"),
        ):
            if not getattr(form, name).strip():
                errors[name] = [f"{label} is required"]
        if errors:
            return errors

        validation = session.address_validation or self.validate_address(session)
        if validation.is_blocked:
            errors["shipping_address"] = list(validation.messages) or ["We cannot ship to this address"]
        elif session.selected_rate is None:
            errors["shipping_rate"] = ["Please select a shipping option"]
        return errors

    def _confirm_rate(self, session: CheckoutSession) -> dict[str, list[str]]:
        rate = session.selected_rate
        if rate is None or session.rate_quote is None or session.rate_quote.find(rate.rate_id) is None:
            session.selected_rate = None
            return {"shipping_rate": ["Please select a shipping option"]}
        return {}

    def _confirm_pickup(self, session: CheckoutSession) -> dict[str, list[str]]:
        slot = self.pickup_service.find_slot(
            session.pickup_location.location_id, session.pickup_slot.schedule_id, now=self.now()
        )
        if slot is None or not slot.is_selectable:
            session.pickup_slot = None
            return {"pickup_slot": ["That pickup time is no longer available. Please choose another."]}
        session.pickup_slot = slot
        return {}

    def _snapshot(self, session: CheckoutSession, lines, pricing: PricingSummary) -> dict:
        form = session.form
        winner = session.discount.winner if session.discount else None
        snapshot = {
            "checkout_id": session.session_id,
            "customer_id": session.customer_id,
            "email": form.email.strip(),
            "customer_name": form.full_name or None,
            "phone": form.phone or None,
            "lines": [line.to_dict() for line in lines],
            "fulfillment_method": session.fulfillment_method.value,
            "growing_system": form.growing_system,
            "discount_source": pricing.discount_source,
            "promotion_id": winner.promotion_id if winner else None,
            "promotion_code": winner.promotion_code if winner else None,
            **pricing.as_order_pricing(),
        }

        if session.fulfillment_method == FulfillmentMethod.SHIPPING:
            address = form.shipping_address()
            rate = session.selected_rate
            snapshot["shipping_address"] = {
                "name": address.name,
                "address_line1": address.address_line1,
                "address_line2": address.address_line2,
                "city": address.city,
                "state": address.state,
                "postal_code": address.postal_code,
                "country_code": address.country_code,
            }
            snapshot["shipping_selection"] = {
                "rate_id": rate.rate_id,
                "carrier_name": rate.carrier_name,
                "service_name": rate.service_name,
                "amount": rate.amount,
                "transit_days": rate.transit_days,
            }
        else:
            location, slot = session.pickup_location, session.pickup_slot
            snapshot["pickup"] = {
                "location_id": location.location_id,
                "location_name": location.name,
                "location_state": location.state,
                "schedule_id": slot.schedule_id,
                "pickup_date": slot.slot_date.isoformat(),
                "start_time": slot.start_time.strftime("%H:%M"),
                "end_time": slot.end_time.strftime("%H:%M"),
            }
        return snapshot

    def _create_order(self, session: CheckoutSession, lines) -> OrderRef:
        # Server-side recompute; this is the figure that gets charged
        pricing = self.refresh(session)
        try:
            ref = self.order_store.create_order(self._snapshot(session, lines, pricing))
        except ValidationError as exc:
            messages = exc.messages if isinstance(exc.messages, dict) else {"order": [str(exc)]}
            if "stock" in messages or "insufficient stock" in str(exc).lower():
                issues = self.stock_validator.check(lines)
                if issues:
                    self._stock_conflict(session, issues)
            logger.warning("Order creation rejected", session_id=session.session_id, errors=messages)
            session.report(messages)
            session.transition_to(CheckoutState.FORM)
            raise OrderCreateError("We could not create your order. Please try again.", messages) from exc
        except Exception as exc:
            logger.error("Order creation failed", session_id=session.session_id, error=str(exc))
            session.report({"order": ["We could not create your order. Please try again."]})
            session.transition_to(CheckoutState.FORM)
            raise OrderCreateError("We could not create your order. Please try again.") from exc

        session.order_ref = ref
        logger.info("Checkout order created", order_id=ref.order_id, order_number=ref.order_number)
        return ref

    def _authorize(self, session: CheckoutSession) -> SubmissionResult:
        session.transition_to(CheckoutState.PAYMENT_AUTHORIZE)
        ref = session.order_ref
        try:
            order = self.order_store.get_order(ref.order_id)
            intent = self.authorizer.create_intent(
                ref.order_id,
                ref.order_number,
                amount_due=order.pricing.grand_total,
                email=session.form.email,
                use_credit=session.form.use_credit,
                metadata={"checkout_id": session.session_id},
            )
        except Exception as exc:
            logger.error("Payment intent creation raised", order_id=ref.order_id, error=str(exc))
            return self._payment_failed(session, PAYMENT_FAILED_MESSAGE)

        if not intent.success:
            return self._payment_failed(session, intent.failure_reason or PAYMENT_FAILED_MESSAGE)

        self.order_store.update_order(
            ref.order_id,
            {
                "payment_intent_id": intent.intent_id,
                "amount_charged": intent.amount,
                "credit_applied": intent.credit_applied,
            },
        )
        session.payment_intent = intent
        session.errors.pop("payment", None)
        session.transition_to(CheckoutState.PAYMENT_CONFIRM)
        return self._result(session)

    def _payment_failed(self, session: CheckoutSession, reason: str) -> SubmissionResult:
        order_id = session.order_ref.order_id
        self.order_store.update_order(order_id, {"payment_status": "failed", "reason": reason})
        session.transition_to(CheckoutState.PAYMENT_FAILED)
        session.report({"payment": [reason]})
        self.capture_abandoned(session)
        logger.warning("Checkout payment failed", order_id=order_id, reason=reason)
        raise PaymentError(reason)

    def _finalize(self, session: CheckoutSession, payment_required: bool) -> SubmissionResult:
        ref = session.order_ref
        try:
            self.order_store.update_order(ref.order_id, {"status": "finalized", "payment_required": payment_required})
        except Exception as exc:
            logger.error("Order finalisation failed", order_id=ref.order_id, error=str(exc))
            session.transition_to(CheckoutState.FAILED)
            message = (
                f"We received your order {ref.order_number} but could not complete it. "
                "Please contact us with your order number."
            )
            session.report({"order": [message]})
            raise FinalizationError(message) from exc

        summary = self._confirmation_summary(session)
        self._after_commit("redeem_credit", lambda: self._redeem_credit(session))
        self._after_commit("clear_cart", self.cart.clear)
        self._after_commit("record_promotion_usage", lambda: self._record_promotion_usage(session))
        self._after_commit("send_confirmation", lambda: send_order_confirmation(session.form.email, summary))
        session.forget_promo_code()

        session.transition_to(CheckoutState.CONFIRMED)
        logger.info("Checkout confirmed", order_id=ref.order_id, order_number=ref.order_number)
        return self._result(session)

    def _after_commit(self, step: str, action) -> None:
        try:
            action()
        except Exception as exc:
            logger.warning("Post-order step failed", step=step, error=str(exc))

    def _redeem_credit(self, session: CheckoutSession) -> None:
        intent = session.payment_intent
        if intent is None or not intent.credit_applied:
            return
        result = get_credit_service().redeem(session.form.email, session.order_ref.order_id)
        if not result.redeemed:
            logger.warning("Credit redemption refused", order_id=session.order_ref.order_id, error=result.error)

    def _record_promotion_usage(self, session: CheckoutSession) -> None:
        order = self.order_store.get_order(session.order_ref.order_id)
        if not order.promotion_id:
            return
        current_domain.process(
            RecordPromotionUsage(
                promotion_id=order.promotion_id,
                order_id=order.id,
                customer_id=order.customer_id,
                email=order.email,
            ),
            asynchronous=False,
        )

    def _confirmation_summary(self, session: CheckoutSession) -> dict:
        order = self.order_store.get_order(session.order_ref.order_id)
        pricing = order.pricing
        return {
            "order_number": order.order_number,
            "first_name": session.form.first_name,
            "fulfillment_method": order.fulfillment_method,
            "lines": [
                {"name": line.name, "quantity": line.quantity, "unit_price": line.unit_price} for line in order.lines
            ],
            "pickup": order.pickup.to_dict() if order.pickup else None,
            "subtotal": pricing.subtotal,
            "discount_total": pricing.discount_total,
            "discount_label": pricing.discount_label,
            "shipping_cost": pricing.shipping_cost,
            "tax_total": pricing.tax_total,
            "grand_total": pricing.grand_total,
            "currency": pricing.currency,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_repriceable(self, session: CheckoutSession) -> None:
        if session.order_placed:
            raise ValidationError(
                {"order": [f"Order {session.order_ref.order_number} is already placed; its total can no longer change"]}
            )

    def _back_to_form(self, session: CheckoutSession, errors: dict) -> SubmissionResult:
        session.report(errors)
        session.transition_to(CheckoutState.FORM)
        logger.info("Checkout validation failed", session_id=session.session_id, fields=sorted(errors))
        raise ValidationError(errors)

    def _stock_conflict(self, session: CheckoutSession, issues) -> SubmissionResult:
        session.stock_issues = tuple(issues)
        session.transition_to(CheckoutState.STOCK_CONFLICT)
        conflict = StockConflict(issues)
        session.report(conflict.messages)
        logger.info("Checkout stock conflict", session_id=session.session_id, products=[i.product_id for i in issues])
        raise conflict

    def _result(self, session: CheckoutSession, duplicate: bool = False, requires_action: bool = False):
        ref = session.order_ref
        intent = session.payment_intent
        return SubmissionResult(
            state=session.state,
            order_id=ref.order_id if ref else None,
            order_number=ref.order_number if ref else None,
            client_secret=intent.client_secret if intent else None,
            amount_charged=intent.amount if intent else None,
            duplicate=duplicate,
            requires_action=requires_action,
        )
