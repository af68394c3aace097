"""Checkout error taxonomy.

Everything up to order creation blocks progress and is shown next to the
step that failed. Failures after the order exists (emails, credit ledger,
promotion usage) are logged and never undo the order.
"""


class CheckoutError(Exception):
    """Base for checkout failures.

    ``messages`` is a ``{field: [message, ...]}`` dict, the same shape as
    ``protean.exceptions.ValidationError.messages``, so the session can
    render any failure inline. ``recoverable`` errors leave the checkout
    usable once the customer acts on them.
    """

    recoverable = True
    field = "checkout"

    def __init__(self, message: str, messages: dict | None = None):
        super().__init__(message)
        self.message = message
        self.messages = messages or {self.field: [message]}


class StockConflict(CheckoutError):
    """Requested quantities exceed what is on hand."""

    field = "stock"

    def __init__(self, issues, message: str | None = None):
        self.issues = tuple(issues)
        if message is None:
            message = "Some items are no longer available in the requested quantity: " + ", ".join(
                f"{issue.name} (requested {issue.requested}, available {issue.available})" for issue in self.issues
            )
        super().__init__(message)


class ZoneBlocked(CheckoutError):
    """The destination cannot be served; the customer must change the address."""

    field = "shipping_address"
    recoverable = False

    def __init__(self, state: str, message: str | None = None):
        self.state = state
        super().__init__(message or "Shipping to this location is not available.")


class ShippingUnavailable(CheckoutError):
    """No rates could be obtained for an otherwise valid address."""

    field = "shipping_rate"


class PaymentError(CheckoutError):
    """The payment could not be authorized; the order stays pending."""

    field = "payment"


class OrderCreateError(CheckoutError):
    """The order could not be persisted."""

    field = "order"


class IntegrationError(CheckoutError):
    """A post-commit side effect failed; logged, never surfaced as a checkout failure."""

    field = "integration"


class FinalizationError(CheckoutError):
    """Payment went through but the order could not be completed; needs manual follow-up."""

    field = "order"
    recoverable = False
