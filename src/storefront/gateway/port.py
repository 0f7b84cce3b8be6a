"""Payment gateway port (abstract interface).

Card payments are authorized through this contract instead of being
marked authorized on faith. Cash-on-delivery orders never reach it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthorizationResult:
    """Result of a card authorization attempt."""

    success: bool
    gateway_reference: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def authorize(
        self,
        amount: int,
        currency: str,
        payment_method_type: str,
        last4: str | None,
        idempotency_key: str,
    ) -> AuthorizationResult:
        """Authorize ``amount`` minor currency units. Repeating a key returns the first result."""
        ...
