# app/services/errors.py
from __future__ import annotations


class IntakeError(Exception):
    """Base for every failure the intake flow classifies.

    ``code`` is the stable machine-readable value put in the response
    envelope; ``status_code`` is the HTTP status the route answers with.
    ``public_message`` is what a caller may see. The exception's own
    ``str()`` may carry more detail and only goes to the log.
    """

    code = "internal_error"
    status_code = 500
    public_message = "Something went wrong while placing the order."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)


class ValidationError(IntakeError):
    """Bad or missing required input. The message is safe to show."""

    code = "validation_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.public_message = message


class StoreUnavailable(IntakeError):
    code = "store_unavailable"
    status_code = 500
    public_message = "Your order could not be recorded. Please try again in a moment."


class DeliveryUnavailable(IntakeError):
    # recovered inside IntakeService, never surfaced as a failure
    code = "delivery_unavailable"
    status_code = 200
    public_message = "The receipt email could not be sent."


class InternalError(IntakeError):
    code = "internal_error"
    status_code = 500
