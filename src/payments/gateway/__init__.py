"""Payment gateway registry.

The checkout charges through whichever gateway is registered here.
``PAYMENT_GATEWAY`` names the adapter to build on first use; only the
in-memory ``fake`` gateway ships with the storefront, and tests swap in
their own instance with set_gateway().
"""

import os

from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
        if adapter != "fake":
            raise ValueError(f"Unknown payment gateway: {adapter}")

        from payments.gateway.fake_adapter import FakeGateway

        _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
