"""Tests for the checkout session — state machine, rate invalidation, promo code expiry."""

from datetime import UTC, datetime, timedelta

import pytest
from fulfillment.carrier.port import ShippingRateOption
from fulfillment.rates import RateQuote
from ordering.checkout.session import CheckoutSession, CheckoutState
from protean.exceptions import ValidationError


def _quote(*rate_ids):
    rates = tuple(
        ShippingRateOption(rate_id=rate_id, carrier_id="se-ups", carrier_name="UPS", service_name="Ground", amount=6.0)
        for rate_id in rate_ids
    )
    return RateQuote(rates=rates, package_breakdown=None, zone=None)


def _session_with_rate():
    session = CheckoutSession()
    session.update_address(address_line1="1 Peach St", city="Atlanta", state="GA", postal_code="30301")
    ticket = session.begin_rate_request()
    session.accept_rates(ticket, _quote("rate-1", "rate-2"))
    session.select_rate("rate-1")
    return session


class TestStateMachine:
    def test_starts_in_form(self):
        session = CheckoutSession()
        assert session.state == CheckoutState.FORM
        assert session.completed is False

    def test_valid_path_to_confirmed(self):
        session = CheckoutSession()
        for state in (
            CheckoutState.VALIDATING,
            CheckoutState.STOCK_CHECK,
            CheckoutState.RATE_CONFIRM,
            CheckoutState.ORDER_CREATE,
            CheckoutState.PAYMENT_AUTHORIZE,
            CheckoutState.PAYMENT_CONFIRM,
            CheckoutState.FINALIZE,
            CheckoutState.CONFIRMED,
        ):
            session.transition_to(state)
        assert session.completed is True

    def test_cannot_skip_to_order_create(self):
        session = CheckoutSession()
        with pytest.raises(ValidationError) as exc:
            session.transition_to(CheckoutState.ORDER_CREATE)
        assert "state" in exc.value.messages

    def test_confirmed_is_terminal(self):
        session = CheckoutSession()
        session.state = CheckoutState.CONFIRMED
        for state in CheckoutState:
            assert session.can_transition(state) is False

    def test_payment_failed_only_retries_payment(self):
        session = CheckoutSession()
        session.state = CheckoutState.PAYMENT_FAILED
        assert session.can_transition(CheckoutState.PAYMENT_AUTHORIZE)
        assert not session.can_transition(CheckoutState.ORDER_CREATE)

    def test_in_flight_states(self):
        session = CheckoutSession()
        session.state = CheckoutState.ORDER_CREATE
        assert session.in_flight is True
        session.state = CheckoutState.PAYMENT_FAILED
        assert session.in_flight is False


class TestAddressInvalidation:
    def test_postal_code_change_clears_selected_rate(self):
        session = _session_with_rate()
        assert session.selected_rate.rate_id == "rate-1"

        changed = session.update_address(postal_code="30302")

        assert changed is True
        assert session.selected_rate is None
        assert session.rate_quote is None
        assert session.address_validation is None

    def test_unchanged_address_keeps_rate(self):
        session = _session_with_rate()
        assert session.update_address(postal_code="30301") is False
        assert session.selected_rate is not None

    def test_update_form_routes_address_fields(self):
        session = _session_with_rate()
        session.update_form(email="ada@example.com", city="Decatur")
        assert session.form.email == "ada@example.com"
        assert session.selected_rate is None

    def test_unknown_form_field_rejected(self):
        with pytest.raises(ValidationError):
            CheckoutSession().update_form(favourite_colour="green")


class TestRateRequests:
    def test_latest_request_wins(self):
        session = CheckoutSession()
        first = session.begin_rate_request()
        second = session.begin_rate_request()

        assert session.accept_rates(second, _quote("new")) is True
        assert session.accept_rates(first, _quote("old")) is False
        assert session.rate_quote.find("new") is not None

    def test_address_change_supersedes_in_flight_request(self):
        session = CheckoutSession()
        ticket = session.begin_rate_request()
        session.update_address(postal_code="30303")
        assert session.accept_rates(ticket, _quote("stale")) is False
        assert session.rate_quote is None

    def test_selection_dropped_when_missing_from_new_quote(self):
        session = _session_with_rate()
        session.accept_rates(session.begin_rate_request(), _quote("rate-9"))
        assert session.selected_rate is None

    def test_unknown_rate_rejected(self):
        session = _session_with_rate()
        with pytest.raises(ValidationError):
            session.select_rate("rate-404")


class TestPromoCodeMarker:
    def test_code_expires_after_ttl(self):
        session = CheckoutSession(promo_code_ttl_minutes=30)
        now = datetime(2026, 4, 1, 12, 0, tzinfo=UTC)
        session.remember_promo_code(" spring5 ", now)

        assert session.active_promo_code(now + timedelta(minutes=29)) == "spring5"
        assert session.active_promo_code(now + timedelta(minutes=30)) is None
        assert session.active_promo_code(now) is None

    def test_forget(self):
        session = CheckoutSession()
        now = datetime.now(UTC)
        session.remember_promo_code("SPRING5", now)
        session.forget_promo_code()
        assert session.active_promo_code(now) is None
