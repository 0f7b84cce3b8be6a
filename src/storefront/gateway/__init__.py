"""Payment gateway adapters.

``build_gateway()`` returns the adapter named by ``PAYMENT_GATEWAY``.
FakeGateway is the only adapter shipped; a hosted gateway plugs in by
implementing ``PaymentGateway``.
"""

import os

from storefront.gateway.port import PaymentGateway


def build_gateway() -> PaymentGateway:
    adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
    if adapter == "fake":
        from storefront.gateway.fake_adapter import FakeGateway

        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {adapter}")
