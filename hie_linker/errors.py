"""Error types raised by the HIE client and the linking pipeline."""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import TransactionState


class ErrorType(Enum):
    VALIDATION = (400, "Bad Request")
    AUTHENTICATION = (401, "Unauthorized")
    AUTHORIZATION = (403, "Forbidden")
    NOT_FOUND = (404, "Not Found")
    CONFLICT = (409, "Conflict")
    CONNECTION = (503, "Service Unavailable")
    INTERNAL_SERVER_ERROR = (500, "Internal Server Error")

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def status_message(self) -> str:
        return self.value[1]


_STATUS_TO_ERROR_TYPE = {
    400: ErrorType.VALIDATION,
    401: ErrorType.AUTHENTICATION,
    403: ErrorType.AUTHORIZATION,
    404: ErrorType.NOT_FOUND,
    409: ErrorType.CONFLICT,
}


def error_type_for_status(status_code: int) -> ErrorType:
    """Classify an upstream HTTP status. Anything unmapped is a server error."""
    return _STATUS_TO_ERROR_TYPE.get(status_code, ErrorType.INTERNAL_SERVER_ERROR)


class EhrApiError(Exception):
    """Structured error carrying an HTTP-style classification.

    ``transaction_state`` is only set by the linking pipeline, and only on
    failure, so callers can see how far a run got.
    """

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER_ERROR,
        transaction_state: TransactionState | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.transaction_state = transaction_state

    @property
    def status_code(self) -> int:
        return self.error_type.status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class ValidationError(EhrApiError):
    """Malformed or missing input, caught before the data leaves this process."""

    def __init__(self, message: str):
        super().__init__(message, ErrorType.VALIDATION)


class RemoteServiceError(EhrApiError):
    """A remote stage call failed at the transport or application level."""

    def __init__(self, message: str, error_type: ErrorType = ErrorType.INTERNAL_SERVER_ERROR, body: str = ""):
        super().__init__(message, error_type)
        self.body = body
