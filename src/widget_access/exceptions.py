"""Error taxonomy shared by the widget access engine and its HTTP surface."""

from __future__ import annotations

from typing import Any


class WidgetAccessError(Exception):
    """Base class for every error raised on purpose by widget-access."""

    status_code: int = 500
    code: str = "WIDGET_ACCESS_ERROR"
    title: str = "Internal Server Error"

    def __init__(self, message: str, *, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(WidgetAccessError):
    """The target widget (or related record) does not exist."""

    status_code = 404
    code = "NOT_FOUND"
    title = "Not Found"


class ValidationError(WidgetAccessError):
    """Malformed identifier or patch, rejected before any transaction opens."""

    status_code = 422
    code = "VALIDATION_ERROR"
    title = "Unprocessable Entity"


class ConflictError(WidgetAccessError):
    """A relation that must be unique already exists."""

    status_code = 409
    code = "CONFLICT"
    title = "Conflict"


class TransactionFailure(WidgetAccessError):
    """A write failed inside its transaction and was rolled back."""

    status_code = 500
    code = "TRANSACTION_FAILED"
    title = "Internal Server Error"


__all__ = [
    "WidgetAccessError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "TransactionFailure",
]
