"""Abandoned cart capture.

While a customer is in checkout with a usable email, a snapshot of the
cart is upserted under the checkout session id so the store can follow up
later. Finalising the order marks the snapshot converted. Capture is best
effort: a failure is logged and never holds up the checkout.
"""

import json
import re
from datetime import UTC, datetime

import structlog
from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.cart.line import lines_item_count, lines_subtotal
from ordering.domain import ordering
from ordering.order.events import OrderFinalized
from ordering.order.order import Order
from shared.money import round_money

logger = structlog.get_logger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email: str | None) -> bool:
    return bool(email and _EMAIL_PATTERN.match(email.strip()))


@ordering.projection
class AbandonedCart:
    session_id = Identifier(identifier=True, required=True)
    email = String(required=True, max_length=255)
    customer_id = Identifier()
    first_name = String(max_length=100)
    lines = Text()  # JSON: list of line dicts
    cart_total = Float(default=0.0)
    item_count = Integer(default=0)
    captured_at = DateTime()
    updated_at = DateTime()
    converted_at = DateTime()
    order_id = Identifier()


def capture_abandoned_cart(session_id, email, lines, customer_id=None, first_name=None) -> bool:
    """Upsert the cart snapshot for ``session_id``. Returns True when stored."""
    if not is_valid_email(email) or not lines:
        return False

    now = datetime.now(UTC)
    try:
        repo = current_domain.repository_for(AbandonedCart)
        try:
            record = repo.get(str(session_id))
        except ObjectNotFoundError:
            record = AbandonedCart(session_id=str(session_id), email=email.strip(), captured_at=now)

        record.email = email.strip()
        record.customer_id = str(customer_id) if customer_id else None
        record.first_name = first_name
        record.lines = json.dumps([line.to_dict() for line in lines])
        record.cart_total = round_money(lines_subtotal(lines))
        record.item_count = lines_item_count(lines)
        record.updated_at = now
        repo.add(record)
    except Exception as exc:
        logger.warning("Abandoned cart capture failed", session_id=str(session_id), error=str(exc))
        return False

    return True


@ordering.projector(projector_for=AbandonedCart, aggregates=[Order])
class AbandonedCartProjector:
    @on(OrderFinalized)
    def on_order_finalized(self, event):
        """The checkout completed — the captured cart is no longer abandoned."""
        if not event.checkout_id:
            return

        repo = current_domain.repository_for(AbandonedCart)
        try:
            record = repo.get(str(event.checkout_id))
        except ObjectNotFoundError:
            return

        record.converted_at = event.finalized_at
        record.order_id = event.order_id
        repo.add(record)
