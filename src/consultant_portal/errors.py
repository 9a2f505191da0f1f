"""Exception taxonomy shared by services and the HTTP layer."""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when a business rule rejects the request before any write."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class InvoiceCreationError(AppError):
    """Raised when persisting a client invoice fails after validation passed."""

    status_code = 500
    code = "INVOICE_CREATION_FAILED"

    def __init__(self, reason: str, invoice_number: int, cycle_id: int):
        self.invoice_number = invoice_number
        self.cycle_id = cycle_id
        super().__init__(
            f"Failed to insert client invoice: {reason}. "
            f"Invoice number: {invoice_number}, Cycle ID: {cycle_id}"
        )


class MailerError(AppError):
    """Raised when the invoice mailer could not deliver an invoice."""

    status_code = 502
    code = "MAILER_ERROR"
