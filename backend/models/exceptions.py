"""
Custom domain exceptions for the contact backend.

These exceptions are raised by the service layer and converted to HTTP responses
by centralized exception handlers in main.py, so services stay HTTP-agnostic.

Each exception carries a correlation ID that is also returned to the caller in
the X-Correlation-ID header, so a visitor reporting a failure can be matched to
the server-side logs.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message (shown to the visitor).
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class InvalidPayloadException(DomainException):
    """Raised when the request body is not a JSON object."""

    def __init__(self, message: str = "Payload non valido."):
        super().__init__(message)


class ContactValidationException(DomainException):
    """Raised when submitted fields fail validation.

    Attributes:
        errors: Mapping of field name to a message the visitor can act on.
    """

    def __init__(self, message: str, errors: dict[str, str]):
        super().__init__(message)
        self.errors = errors


class ContactRateLimitException(DomainException):
    """Raised when a client exceeded the burst or hourly submission ceiling."""

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class ContactConfigurationException(DomainException):
    """Raised when the email settings required to notify the estate are missing."""

    def __init__(
        self,
        missing: list[str],
        message: str = "Servizio email non configurato correttamente.",
    ):
        super().__init__(message)
        self.missing = missing


class EmailDeliveryException(DomainException):
    """Raised when the notification email fails to send."""

    def __init__(
        self, message: str = "Errore temporaneo nell'invio. Riprova tra poco."
    ):
        super().__init__(message)
