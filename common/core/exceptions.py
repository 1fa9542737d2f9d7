from typing import Any, Optional


class AppException(Exception):
    """Base application exception.

    ``context`` is merged into the ``extra`` of the log record when the error
    is reported, so raise sites can attach ids without formatting them into
    the message.
    """

    def __init__(self, message: str = "", context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class NotFoundError(AppException):
    """Resource not found exception."""


class ValidationError(AppException):
    """Validation error exception."""


class StorageError(AppException):
    """The datastore rejected or failed an operation."""


class ProcessingError(AppException):
    """Work failed and should be redelivered by whoever sent it."""
