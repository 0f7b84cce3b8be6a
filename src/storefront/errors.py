"""Storefront errors that protean.exceptions does not cover.

Validation failures, missing records and illegal state transitions use
protean's ``ValidationError``, ``ObjectNotFoundError`` and
``InvalidOperationError``. The classes here describe failures of the
external stores and the payment gateway.
"""


class PersistenceError(Exception):
    """An external store read or write failed."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class TransientSyncError(PersistenceError):
    """A real-time listener delivered an error instead of a snapshot."""


class PaymentDeclined(Exception):
    """The payment gateway refused to authorize a card payment."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
