"""Admission error taxonomy.

Every rejected scan raises a subclass of ``AdmissionError``. The exception knows its
machine-readable kind, the HTTP status it maps to, and whether the caller should
simply retry ("nothing happened") or escalate ("this credential cannot be used now").
"""

import typing as t
from enum import StrEnum


class ErrorKind(StrEnum):
    """Machine-readable rejection reasons returned to gate terminals."""

    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    INVALID_INPUT = "INVALID_INPUT"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    BOOKING_REFUNDED = "BOOKING_REFUNDED"
    BOOKING_NOT_CONFIRMED = "BOOKING_NOT_CONFIRMED"
    TICKET_CANCELLED = "TICKET_CANCELLED"
    ALREADY_ADMITTED = "ALREADY_ADMITTED"
    GROUP_FULLY_ADMITTED = "GROUP_FULLY_ADMITTED"
    ADMISSION_UNAVAILABLE = "ADMISSION_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorCategory(StrEnum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    BOOKING_STATE = "booking_state"
    TICKET_STATE = "ticket_state"
    INTERNAL = "internal"


class AdmissionError(Exception):
    """Base class for every expected admission failure."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    category: ErrorCategory = ErrorCategory.INTERNAL
    status_code: int = 500
    retryable: bool = True
    default_message: str = "Check-in failed."

    def __init__(self, message: str | None = None, **context: t.Any) -> None:
        """Initialize with an optional message override and response context fields."""
        self.message = message or self.default_message
        self.context = {key: value for key, value in context.items() if value is not None}
        super().__init__(self.message)

    def as_payload(self) -> dict[str, t.Any]:
        """Render the error body returned to the calling terminal."""
        return {
            "error_kind": self.kind.value,
            "category": self.category.value,
            "retryable": self.retryable,
            "message": self.message,
            **self.context,
        }


class CredentialNotFoundError(AdmissionError):
    """Raised when no ticket matches the scanned token."""

    kind = ErrorKind.INVALID_CREDENTIAL
    category = ErrorCategory.NOT_FOUND
    status_code = 404
    default_message = "Invalid or expired ticket."


class InvalidScanRequestError(AdmissionError):
    """Raised for malformed tokens or a non-positive explicit person count."""

    kind = ErrorKind.INVALID_INPUT
    category = ErrorCategory.VALIDATION
    status_code = 400
    default_message = "Invalid input data."


class BookingStateError(AdmissionError):
    """Raised when the owning booking is not in a state that allows entry."""

    category = ErrorCategory.BOOKING_STATE
    status_code = 403
    retryable = False

    def __init__(self, kind: ErrorKind, message: str, **context: t.Any) -> None:
        """Initialize with the booking-specific error kind."""
        self.kind = kind
        super().__init__(message, **context)

    @classmethod
    def cancelled(cls, **context: t.Any) -> "BookingStateError":
        return cls(ErrorKind.BOOKING_CANCELLED, "This booking has been cancelled.", **context)

    @classmethod
    def refunded(cls, **context: t.Any) -> "BookingStateError":
        return cls(ErrorKind.BOOKING_REFUNDED, "This booking has been refunded and is not valid for entry.", **context)

    @classmethod
    def not_confirmed(cls, **context: t.Any) -> "BookingStateError":
        return cls(ErrorKind.BOOKING_NOT_CONFIRMED, "This booking has not been confirmed yet.", **context)


class TicketCancelledError(AdmissionError):
    """Raised when the scanned ticket itself has been cancelled."""

    kind = ErrorKind.TICKET_CANCELLED
    category = ErrorCategory.TICKET_STATE
    status_code = 403
    retryable = False
    default_message = "This ticket has been cancelled."


class AlreadyAdmittedError(AdmissionError):
    """Raised when an individual ticket has already been used."""

    kind = ErrorKind.ALREADY_ADMITTED
    category = ErrorCategory.TICKET_STATE
    status_code = 409
    retryable = False
    default_message = "This individual ticket has already been used."


class GroupFullyAdmittedError(AdmissionError):
    """Raised when a group ticket has no capacity left."""

    kind = ErrorKind.GROUP_FULLY_ADMITTED
    category = ErrorCategory.TICKET_STATE
    status_code = 410
    retryable = False
    default_message = "All persons for this booking have already checked in via the group ticket."


class AdmissionUnavailableError(AdmissionError):
    """Raised when the booking lock could not be obtained or conflicts exhausted the retry budget.

    Nothing was committed; the terminal may retry the scan.
    """

    kind = ErrorKind.ADMISSION_UNAVAILABLE
    category = ErrorCategory.INTERNAL
    status_code = 503
    default_message = "Check-in is temporarily unavailable, please scan again."
