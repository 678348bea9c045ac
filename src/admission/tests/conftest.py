import pytest

from admission.models import Booking, Ticket
from admission.service.issuance_service import generate_ticket_token, issue_group_booking

SEATS = ["vip-t2-s1", "vip-t2-s2", "vip-t2-s3", "vip-t2-s4"]


@pytest.fixture
def booking() -> Booking:
    """A confirmed booking without tickets."""
    return Booking.objects.create(
        booking_number="EVT-1001",
        guest_name="Ada Lovelace",
        event_title="Gala Night",
        status=Booking.BookingStatus.CONFIRMED,
    )


@pytest.fixture
def individual_ticket(booking: Booking) -> Ticket:
    """A standalone individual ticket."""
    return Ticket.objects.create(
        booking=booking,
        token=generate_ticket_token("IND"),
        kind=Ticket.TicketKind.INDIVIDUAL,
        issuance_sequence=1,
        seat_label="A-12",
    )


@pytest.fixture
def group_booking() -> Booking:
    """A confirmed booking with a group ticket for 4 persons and 4 bundled individual tickets."""
    return issue_group_booking("EVT-MASTER", SEATS, guest_name="Test Family", event_title="Gala Night")


@pytest.fixture
def group_ticket(group_booking: Booking) -> Ticket:
    return group_booking.tickets.get(kind=Ticket.TicketKind.GROUP)


@pytest.fixture
def children(group_ticket: Ticket) -> list[Ticket]:
    """The bundled tickets, in issuance order."""
    return list(Ticket.objects.children_of(group_ticket))
