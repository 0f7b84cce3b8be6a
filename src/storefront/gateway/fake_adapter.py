"""Configurable fake payment gateway for development and testing.

Simulates a card gateway without external calls. It can be configured at
runtime to approve or decline, and replays the stored result when the same
idempotency key is presented twice.
"""

from uuid import uuid4

from storefront.gateway.port import AuthorizationResult, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self._results: dict[str, AuthorizationResult] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def authorize(
        self,
        amount: int,
        currency: str,
        payment_method_type: str,
        last4: str | None,
        idempotency_key: str,
    ) -> AuthorizationResult:
        self.calls.append(
            {
                "method": "authorize",
                "amount": amount,
                "currency": currency,
                "payment_method_type": payment_method_type,
                "last4": last4,
                "idempotency_key": idempotency_key,
            }
        )
        if idempotency_key in self._results:
            return self._results[idempotency_key]

        if self.should_succeed:
            result = AuthorizationResult(
                success=True,
                gateway_reference=f"fake_auth_{uuid4().hex[:12]}",
                gateway_status="authorized",
            )
        else:
            result = AuthorizationResult(
                success=False,
                gateway_status="declined",
                failure_reason=self.failure_reason,
            )
        self._results[idempotency_key] = result
        return result
