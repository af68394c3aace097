"""BDD tests for checkout submission."""

from ordering.checkout.errors import CheckoutError
from ordering.discount.promotion import Promotion
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/checkout_submission.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer applies the code "{code}"'))
def apply_code(checkout, session, code):
    checkout.apply_promo_code(session, code)


@when("the customer submits the checkout")
def submit(checkout, session, error):
    try:
        checkout.submit(session)
    except (ValidationError, CheckoutError) as exc:
        error["exc"] = exc


@when("the payment is confirmed")
def confirm(checkout, session):
    checkout.confirm_payment(session)


@when("the card is accepted")
def card_accepted(gateway):
    gateway.configure(should_succeed=True)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name}" is reported with {requested:d} requested and {available:d} available'))
def stock_issue_reported(session, error, name, requested, available):
    issue = next(issue for issue in session.stock_issues if issue.name == name)
    assert (issue.requested, issue.available) == (requested, available)
    assert error["exc"].issues == session.stock_issues


@then(parsers.cfparse('the promotion "{code}" has been used {count:d} time'))
def promotion_used(code, count):
    promotion = current_domain.repository_for(Promotion)._dao.query.filter(code=code).all().items[0]
    assert promotion.times_used == count


@then("only one order was created")
def one_order(catalog):
    assert catalog.get_product("basil").available_quantity == 48
