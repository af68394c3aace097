"""Order placement — command and handler.

Placing an order is where inventory is committed. The handler re-reads
stock, builds the order, and only then decrements stock, so a product that
sold out between the checkout's stock check and this command fails here
with an "Insufficient stock" error instead of overselling. Stock taken by a
placement that fails later is put back.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from inventory.catalog import get_catalog
from inventory.catalog.port import InsufficientStock
from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    checkout_id = String(max_length=100)
    customer_id = Identifier()
    email = String(required=True, max_length=255)
    customer_name = String(max_length=255)
    phone = String(max_length=50)
    lines = Text(required=True)  # JSON: list of line dicts
    fulfillment_method = String(required=True, max_length=20)
    shipping_address = Text()  # JSON: address dict
    shipping_selection = Text()  # JSON: selected rate dict
    pickup = Text()  # JSON: pickup dict
    growing_system = String(max_length=100)
    subtotal = Float(required=True)
    discount_total = Float(default=0.0)
    discount_label = String(max_length=255)
    discount_source = String(max_length=50)
    promotion_id = String(max_length=100)
    promotion_code = String(max_length=100)
    shipping_cost = Float(default=0.0)
    tax_total = Float(default=0.0)
    tax_rate = Float(default=0.0)
    tax_note = String(max_length=255)
    grand_total = Float(required=True)
    currency = String(max_length=3, default="USD")


def _loads(value):
    return json.loads(value) if isinstance(value, str) and value else None


def _commit_stock(catalog, lines_data):
    """Decrement every line, or none: a failure part-way restores the lines
    already taken and reports the shortfall."""
    taken = []
    try:
        for line in lines_data:
            catalog.decrement_stock(str(line["product_id"]), line["quantity"])
            taken.append(line)
    except InsufficientStock as exc:
        _release_stock(catalog, taken)
        raise ValidationError({"stock": [f"Insufficient stock for: {exc.name}"]}) from exc
    except Exception:
        _release_stock(catalog, taken)
        raise


def _release_stock(catalog, lines_data):
    for line in reversed(lines_data):
        catalog.restore_stock(str(line["product_id"]), line["quantity"])
    if lines_data:
        logger.warning(
            "Stock released after failed placement",
            products=[str(line["product_id"]) for line in lines_data],
        )


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines_data = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        catalog = get_catalog()
        short = []
        for line in lines_data:
            product = catalog.get_product(str(line["product_id"]))
            if product is None or product.available_quantity < line["quantity"]:
                short.append(line["name"])
        if short:
            raise ValidationError({"stock": [f"Insufficient stock for: {', '.join(short)}"]})

        pricing = {
            "subtotal": command.subtotal,
            "discount_total": command.discount_total or 0.0,
            "discount_label": command.discount_label,
            "shipping_cost": command.shipping_cost or 0.0,
            "tax_total": command.tax_total or 0.0,
            "tax_rate": command.tax_rate or 0.0,
            "tax_note": command.tax_note,
            "grand_total": command.grand_total,
            "currency": command.currency or "USD",
        }

        order = Order.place(
            email=command.email,
            lines_data=lines_data,
            fulfillment_method=command.fulfillment_method,
            pricing=pricing,
            customer_id=command.customer_id,
            checkout_id=command.checkout_id,
            customer_name=command.customer_name,
            phone=command.phone,
            shipping_address=_loads(command.shipping_address),
            shipping_selection=_loads(command.shipping_selection),
            pickup=_loads(command.pickup),
            growing_system=command.growing_system,
            discount_source=command.discount_source,
            promotion_id=command.promotion_id,
            promotion_code=command.promotion_code,
        )
        _commit_stock(catalog, lines_data)
        try:
            current_domain.repository_for(Order).add(order)
        except Exception:
            _release_stock(catalog, lines_data)
            raise

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            grand_total=order.pricing.grand_total,
        )
        return str(order.id)
