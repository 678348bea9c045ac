"""Scan validation.

Stateless checks run before any write. The transaction boundary calls these again on the
rows it re-read under the booking lock, so a stale pre-check can never let a scan through.
"""

from admission.exceptions import (
    AlreadyAdmittedError,
    BookingStateError,
    GroupFullyAdmittedError,
    TicketCancelledError,
)
from admission.models import Booking, Ticket


def validate_booking(booking: Booking) -> None:
    """Reject scans for bookings that are not confirmed.

    Booking state always takes precedence over ticket state.
    """
    match booking.status:
        case Booking.BookingStatus.CONFIRMED:
            return
        case Booking.BookingStatus.CANCELLED:
            raise BookingStateError.cancelled(booking_number=booking.booking_number)
        case Booking.BookingStatus.REFUNDED:
            raise BookingStateError.refunded(booking_number=booking.booking_number)
        case _:
            raise BookingStateError.not_confirmed(booking_number=booking.booking_number)


def validate_ticket(ticket: Ticket) -> None:
    """Reject scans for cancelled or exhausted tickets."""
    if ticket.status == Ticket.TicketStatus.CANCELLED:
        raise TicketCancelledError(seat_label=ticket.seat_label)

    if not ticket.is_fully_admitted:
        return

    match ticket.kind:
        case Ticket.TicketKind.GROUP:
            raise GroupFullyAdmittedError(
                admitted=ticket.admitted_count, total=ticket.total_persons, remaining=ticket.remaining
            )
        case _:
            raise AlreadyAdmittedError(
                seat_label=ticket.seat_label,
                admitted=ticket.admitted_count,
                total=ticket.total_persons,
                remaining=ticket.remaining,
            )


def validate_scan(ticket: Ticket, booking: Booking) -> None:
    """Decide whether a scan may proceed. Raises an ``AdmissionError`` subclass, never writes."""
    validate_booking(booking)
    validate_ticket(ticket)
