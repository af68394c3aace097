"""Shared BDD fixtures and step definitions for checkout submission."""

import pytest
from ordering.checkout.fulfillment import FulfillmentMethod
from ordering.checkout.submission import CheckoutService
from ordering.discount.management import CreatePromotion
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then

CITIES = {
    "GA": ("Atlanta", "30303"),
    "FL": ("Tampa", "33601"),
    "CA": ("Sacramento", "95814"),
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def checkout(adapters, cart_store):
    return CheckoutService(cart_store, settings=adapters["settings"])


@pytest.fixture()
def session(checkout):
    return checkout.new_session()


@pytest.fixture()
def error():
    """Container for the last checkout failure."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an automatic promotion "{name}" worth {amount:f} off'))
def automatic_promotion(name, amount):
    current_domain.process(
        CreatePromotion(name=name, discount_type="fixed_amount", discount_value=amount),
        asynchronous=False,
    )


@given(parsers.cfparse('a promotion code "{code}" worth {amount:f} off'))
def promotion_code(code, amount):
    current_domain.process(
        CreatePromotion(name=code.title(), code=code, discount_type="fixed_amount", discount_value=amount),
        asynchronous=False,
    )


@given(parsers.cfparse('the cart holds {quantity:d} of "{product_id}"'))
def cart_holds(cart_store, catalog, checkout, session, quantity, product_id):
    cart_store.add(catalog.get_product(product_id), quantity)
    checkout.refresh(session)


@given(parsers.cfparse('the customer ships to "{state}" choosing "{service_name}"'))
def ships_to(checkout, session, state, service_name):
    city, postal_code = CITIES[state]
    session.update_form(
        email="ada@example.com",
        first_name="Ada",
        last_name="Grower",
        growing_system="Tower Garden",
        address_line1="12 Main St",
        city=city,
        state=state,
        postal_code=postal_code,
    )
    session.choose_fulfillment_method(FulfillmentMethod.SHIPPING)
    quote = checkout.quote_rates(session)
    rate = next(rate for rate in quote.rates if rate.service_name == service_name)
    checkout.select_rate(session, rate.rate_id)


@given("the card will be declined")
def card_declined(gateway):
    gateway.configure(should_succeed=False, failure_reason="Card declined")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the checkout is "{state}"'))
def checkout_state(session, state):
    assert session.state.value == state


@then(parsers.cfparse("the discount applied is {amount:f}"))
def discount_applied(session, amount):
    assert session.pricing.discount_amount == pytest.approx(amount)


@then(parsers.cfparse("the order total is {amount:f}"))
def order_total(session, amount):
    order = current_domain.repository_for(Order).get(session.order_ref.order_id)
    assert order.pricing.grand_total == pytest.approx(amount)


@then(parsers.cfparse("the gateway was asked to charge {amount:f}"))
def gateway_charged(gateway, amount):
    intents = [call for call in gateway.calls if call["method"] == "create_intent"]
    assert intents[-1]["amount"] == pytest.approx(amount)


@then(parsers.cfparse("the gateway was asked for {count:d} payment intent"))
def gateway_intents(gateway, count):
    assert len([call for call in gateway.calls if call["method"] == "create_intent"]) == count


@then("the cart is empty")
def cart_empty(cart_store):
    assert cart_store.lines == ()


@then("no order was created")
def no_order(session, catalog):
    assert session.order_ref is None
    assert catalog.get_product("tomato").available_quantity == 4
