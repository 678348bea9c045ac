"""Create a confirmed booking with a group ticket and its individual tickets."""

import typing as t

from django.core.management.base import BaseCommand, CommandError

from admission.models import Booking
from admission.service.issuance_service import issue_group_booking


class Command(BaseCommand):
    """Seed a group booking for trying out the gate scanners."""

    help = "Create a confirmed booking with one group ticket and N individual tickets, and print their tokens."

    def add_arguments(self, parser: t.Any) -> None:
        """Add command arguments."""
        parser.add_argument("--booking-number", type=str, default="EVT-MASTER-TEST", help="Booking number")
        parser.add_argument(
            "--seats",
            type=str,
            nargs="+",
            default=["vip-t2-s1", "vip-t2-s2", "vip-t2-s3", "vip-t2-s4"],
            help="Seat labels, one individual ticket per seat",
        )
        parser.add_argument("--guest-name", type=str, default="Test Family with Master", help="Guest name")
        parser.add_argument("--event-title", type=str, default="Gala Night", help="Event title")

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Create the booking and print the ticket tokens."""
        booking_number = options["booking_number"]
        if Booking.objects.filter(booking_number=booking_number).exists():
            raise CommandError(f'Booking "{booking_number}" already exists')

        booking = issue_group_booking(
            booking_number,
            options["seats"],
            guest_name=options["guest_name"],
            event_title=options["event_title"],
        )

        self.stdout.write(self.style.SUCCESS(f"\nBooking created: {booking.booking_number}"))
        self.stdout.write(f"Guest: {booking.guest_name}")
        self.stdout.write("")
        for ticket in booking.tickets.in_issuance_order():
            if ticket.is_group:
                self.stdout.write(self.style.SUCCESS(f"Group ticket: {ticket.token}"))
                self.stdout.write(f"   Can check in: {ticket.total_persons} persons")
            else:
                self.stdout.write(f"Individual #{ticket.issuance_sequence}: {ticket.token}")
                self.stdout.write(f"   Seat: {ticket.seat_label}")
        self.stdout.write("")
