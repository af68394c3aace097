"""Order confirmation email.

Sent once an order is finalised. Delivery is best effort: a failure is
reported to the caller, which logs it; it never affects the order.
"""

import structlog

from notifications.channel import get_email_channel
from notifications.channel.email_port import EmailMessage
from ordering.checkout.errors import IntegrationError

logger = structlog.get_logger(__name__)


def render_order_confirmation(summary: dict) -> dict:
    order_number = summary.get("order_number", "N/A")
    currency = summary.get("currency", "USD")

    lines = [
        f"  {line['quantity']} x {line['name']}  {currency} {line['unit_price'] * line['quantity']:.2f}"
        for line in summary.get("lines", [])
    ]
    totals = [f"Subtotal: {currency} {summary.get('subtotal', 0.0):.2f}"]
    if summary.get("discount_total"):
        totals.append(f"{summary.get('discount_label') or 'Discount'}: -{currency} {summary['discount_total']:.2f}")
    if summary.get("fulfillment_method") == "pickup":
        pickup = summary.get("pickup") or {}
        totals.append(
            f"Pickup: {pickup.get('location_name', '')} on {pickup.get('pickup_date', '')} "
            f"{pickup.get('start_time', '')}-{pickup.get('end_time', '')}"
        )
    else:
        totals.append(f"Shipping: {currency} {summary.get('shipping_cost', 0.0):.2f}")
    totals.append(f"Tax: {currency} {summary.get('tax_total', 0.0):.2f}")
    totals.append(f"Total: {currency} {summary.get('grand_total', 0.0):.2f}")

    greeting = f"Hi {summary['first_name']},\n\n" if summary.get("first_name") else ""
    return {
        "subject": f"Order {order_number} Confirmed",
        "body": (
            f"{greeting}Thank you for your order! Your order {order_number} has been confirmed.\n\n"
            + "\n".join(lines)
            + "\n\n"
            + "\n".join(totals)
            + "\n"
        ),
    }


def send_order_confirmation(email: str, summary: dict) -> str:
    """Send the confirmation and return the provider's message id.

    Raises:
        IntegrationError: the provider rejected the message.
    """
    content = render_order_confirmation(summary)
    receipt = get_email_channel().send(
        EmailMessage(
            to=email,
            subject=content["subject"],
            body=content["body"],
            tags={"order_number": summary.get("order_number")},
        )
    )
    if not receipt.sent:
        raise IntegrationError(f"Order confirmation not sent: {receipt.error}")

    logger.info("Order confirmation sent", order_number=summary.get("order_number"), to=email)
    return receipt.message_id
