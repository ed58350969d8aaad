"""Errors raised by the storefront client.

Everything derives from ``StorefrontError`` so callers can catch the whole
family at a UI boundary.
"""


class StorefrontError(Exception):
    """Base class for storefront client errors."""


class ValidationError(StorefrontError):
    """Input rejected locally, before any request was sent."""

    def __init__(self, errors):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in errors.items()))


class QuantityError(ValidationError):
    """A quantity below 1 was passed to an add operation."""

    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__({"quantity": [f"Quantity must be at least 1, got {quantity}"]})


class NotFoundError(StorefrontError):
    """The referenced cart item or order does not exist."""


class NetworkError(StorefrontError):
    """The server could not be reached or did not answer in time."""


class ServerError(StorefrontError):
    """The server answered with a non-success status."""

    def __init__(self, status_code, message, errors=None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or {}
        super().__init__(f"{status_code}: {message}")


class ResponseSchemaError(StorefrontError):
    """A successful response whose body does not match the expected schema."""


class StaleDataError(StorefrontError):
    """The local cart could not be resynchronised with the server."""


class CheckoutInProgressError(StorefrontError):
    """A checkout submission is already running."""
