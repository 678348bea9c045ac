"""Ticket issuance for bookings with a group ticket.

Normally tickets arrive from the booking flow; this is used by the seed command and by
tests to build bookings with the same layout: one group ticket first, then one
individual ticket per seat, bundled by the group ticket.
"""

import secrets
import typing as t

import structlog
from django.db import transaction

from admission.models import Booking, Ticket

logger = structlog.get_logger(__name__)

GROUP_TOKEN_PREFIX = "MASTER"
INDIVIDUAL_TOKEN_PREFIX = "IND"


def generate_ticket_token(prefix: str) -> str:
    """Generate an unguessable QR credential."""
    return f"{prefix}-{secrets.token_urlsafe(18)}"


@transaction.atomic
def issue_group_booking(
    booking_number: str,
    seat_labels: t.Sequence[str | None],
    *,
    guest_name: str | None = None,
    event_title: str = "",
    status: Booking.BookingStatus = Booking.BookingStatus.CONFIRMED,
) -> Booking:
    """Create a booking with a group ticket for ``len(seat_labels)`` persons and one ticket per seat.

    Raises:
        ValueError: If no seats are given.
    """
    if not seat_labels:
        raise ValueError("A group booking needs at least one seat.")

    booking = Booking.objects.create(
        booking_number=booking_number, guest_name=guest_name, event_title=event_title, status=status
    )
    group = Ticket.objects.create(
        booking=booking,
        token=generate_ticket_token(GROUP_TOKEN_PREFIX),
        kind=Ticket.TicketKind.GROUP,
        issuance_sequence=0,
        total_persons=len(seat_labels),
    )
    for sequence, seat_label in enumerate(seat_labels, start=1):
        Ticket.objects.create(
            booking=booking,
            token=generate_ticket_token(INDIVIDUAL_TOKEN_PREFIX),
            kind=Ticket.TicketKind.INDIVIDUAL,
            group=group,
            issuance_sequence=sequence,
            seat_label=seat_label,
        )

    logger.info("group_booking_issued", booking_number=booking_number, total_persons=len(seat_labels))
    return booking
