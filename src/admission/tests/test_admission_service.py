import typing as t
from unittest.mock import patch

import pytest
from django.contrib.auth.models import AbstractUser
from django.db import OperationalError

from admission.exceptions import (
    AdmissionUnavailableError,
    AlreadyAdmittedError,
    BookingStateError,
    CredentialNotFoundError,
    ErrorKind,
    GroupFullyAdmittedError,
    InvalidScanRequestError,
    TicketCancelledError,
)
from admission.models import Booking, CheckInRecord, Ticket
from admission.service import admission_service
from admission.service.admission_service import admit_ticket

pytestmark = pytest.mark.django_db


def refreshed(*tickets: Ticket) -> list[Ticket]:
    for ticket in tickets:
        ticket.refresh_from_db()
    return list(tickets)


class TestIndividualAdmission:
    def test_first_scan_admits_one_person(self, individual_ticket: Ticket, staff_user: AbstractUser) -> None:
        result = admit_ticket(individual_ticket.token, staff=staff_user)

        individual_ticket.refresh_from_db()
        assert individual_ticket.admitted_count == 1
        assert individual_ticket.status == Ticket.TicketStatus.ADMITTED
        assert result.previously_admitted == 0
        assert result.now_admitted == 1
        assert result.persons_entered == 1
        assert result.is_complete
        assert result.message == "Ticket scanned! 1 person checked in."

        entry = CheckInRecord.objects.get(ticket=individual_ticket)
        assert entry.persons_entered == 1
        assert entry.staff == staff_user
        assert entry.is_correction is False

    def test_second_scan_is_rejected_without_changes(self, individual_ticket: Ticket) -> None:
        admit_ticket(individual_ticket.token)

        with pytest.raises(AlreadyAdmittedError) as exc_info:
            admit_ticket(individual_ticket.token)

        individual_ticket.refresh_from_db()
        assert individual_ticket.admitted_count == 1
        assert exc_info.value.context["seat_label"] == "A-12"
        assert CheckInRecord.objects.filter(ticket=individual_ticket).count() == 1

    def test_kiosk_scan_records_no_staff(self, individual_ticket: Ticket) -> None:
        admit_ticket(individual_ticket.token)

        assert CheckInRecord.objects.get(ticket=individual_ticket).staff is None

    def test_token_is_stripped(self, individual_ticket: Ticket) -> None:
        result = admit_ticket(f"  {individual_ticket.token}\n")

        assert result.ticket.id == individual_ticket.id

    def test_explicit_person_count_is_ignored(self, individual_ticket: Ticket) -> None:
        result = admit_ticket(individual_ticket.token, persons_entering=3)

        assert result.persons_entered == 1
        assert CheckInRecord.objects.get(ticket=individual_ticket).persons_entered == 1

    def test_cancelled_ticket_is_rejected(self, individual_ticket: Ticket) -> None:
        individual_ticket.status = Ticket.TicketStatus.CANCELLED
        individual_ticket.save()

        with pytest.raises(TicketCancelledError):
            admit_ticket(individual_ticket.token)

        assert not CheckInRecord.objects.exists()


class TestGroupAdmission:
    def test_partial_then_clamped_scan(
        self, group_ticket: Ticket, children: list[Ticket], staff_user: AbstractUser
    ) -> None:
        first = admit_ticket(group_ticket.token, persons_entering=2, staff=staff_user)

        group_ticket, *kids = refreshed(group_ticket, *children)
        assert group_ticket.admitted_count == 2
        assert group_ticket.status == Ticket.TicketStatus.PARTIALLY_ADMITTED
        assert [kid.status for kid in kids] == [
            Ticket.TicketStatus.ADMITTED,
            Ticket.TicketStatus.ADMITTED,
            Ticket.TicketStatus.VALID,
            Ticket.TicketStatus.VALID,
        ]
        assert [kid.admitted_count for kid in kids] == [1, 1, 0, 0]
        assert first.cascaded_ticket_ids == [kids[0].id, kids[1].id]
        assert not first.is_complete
        assert first.remaining == 2
        assert first.message == "Group ticket scanned! 2 person(s) checked in."

        second = admit_ticket(group_ticket.token, persons_entering=3, staff=staff_user)

        group_ticket, *kids = refreshed(group_ticket, *kids)
        assert second.persons_entered == 2
        assert second.previously_admitted == 2
        assert second.now_admitted == 4
        assert second.is_complete
        assert group_ticket.status == Ticket.TicketStatus.ADMITTED
        assert all(kid.status == Ticket.TicketStatus.ADMITTED for kid in kids)

        ledger = list(CheckInRecord.objects.filter(ticket__booking=group_ticket.booking).newest_first())
        assert [entry.persons_entered for entry in ledger] == [2, 2]
        assert {entry.ticket_id for entry in ledger} == {group_ticket.id}

    def test_default_count_admits_every_pending_child(self, group_ticket: Ticket, children: list[Ticket]) -> None:
        admit_ticket(children[0].token)

        result = admit_ticket(group_ticket.token)

        assert result.persons_entered == 3
        assert result.now_admitted == 3
        assert result.cascaded_ticket_ids == [child.id for child in children[1:]]

    def test_scan_after_full_admission_fails_without_changes(
        self, group_ticket: Ticket, children: list[Ticket]
    ) -> None:
        admit_ticket(group_ticket.token, persons_entering=4)

        with pytest.raises(GroupFullyAdmittedError) as exc_info:
            admit_ticket(group_ticket.token, persons_entering=1)

        group_ticket.refresh_from_db()
        assert group_ticket.admitted_count == 4
        assert exc_info.value.context == {"admitted": 4, "total": 4, "remaining": 0}
        assert CheckInRecord.objects.count() == 1

    def test_cascaded_child_cannot_be_scanned_again(self, group_ticket: Ticket, children: list[Ticket]) -> None:
        admit_ticket(group_ticket.token, persons_entering=1)

        with pytest.raises(AlreadyAdmittedError):
            admit_ticket(children[0].token)

    def test_child_scan_leaves_group_counter_alone(self, group_ticket: Ticket, children: list[Ticket]) -> None:
        admit_ticket(children[2].token)

        group_ticket, child = refreshed(group_ticket, children[2])
        assert group_ticket.admitted_count == 0
        assert child.status == Ticket.TicketStatus.ADMITTED

    def test_group_counter_governs_capacity_after_a_child_scan(
        self, group_ticket: Ticket, children: list[Ticket]
    ) -> None:
        """The group ticket keeps its own capacity even when a bundled ticket was scanned on its own."""
        admit_ticket(children[0].token)

        first = admit_ticket(group_ticket.token)
        second = admit_ticket(group_ticket.token)

        assert first.persons_entered == 3
        assert first.cascaded_ticket_ids == [child.id for child in children[1:]]
        assert second.persons_entered == 1
        assert second.cascaded_ticket_ids == []
        assert second.is_complete
        group_ticket.refresh_from_db()
        assert group_ticket.admitted_count == 4
        ledger = CheckInRecord.objects.filter(ticket__booking=group_ticket.booking)
        assert sum(entry.persons_entered for entry in ledger) == 5

        with pytest.raises(GroupFullyAdmittedError):
            admit_ticket(group_ticket.token)

    def test_distinct_tickets_of_one_booking_do_not_interfere(self, children: list[Ticket]) -> None:
        results = [admit_ticket(child.token) for child in children]

        assert all(result.now_admitted == 1 for result in results)
        assert [child.admitted_count for child in refreshed(*children)] == [1, 1, 1, 1]
        assert CheckInRecord.objects.count() == 4


class TestRejections:
    @pytest.mark.parametrize(
        "status,kind",
        [
            (Booking.BookingStatus.CANCELLED, ErrorKind.BOOKING_CANCELLED),
            (Booking.BookingStatus.REFUNDED, ErrorKind.BOOKING_REFUNDED),
            (Booking.BookingStatus.PENDING, ErrorKind.BOOKING_NOT_CONFIRMED),
        ],
    )
    def test_unconfirmed_booking_never_mutates(
        self, group_booking: Booking, group_ticket: Ticket, status: Booking.BookingStatus, kind: ErrorKind
    ) -> None:
        group_booking.status = status
        group_booking.save()

        with pytest.raises(BookingStateError) as exc_info:
            admit_ticket(group_ticket.token, persons_entering=2)

        assert exc_info.value.kind == kind
        assert list(group_booking.tickets.values_list("admitted_count", flat=True)) == [0, 0, 0, 0, 0]
        assert not CheckInRecord.objects.exists()

    def test_unknown_token(self) -> None:
        with pytest.raises(CredentialNotFoundError):
            admit_ticket("IND-does-not-exist")

    @pytest.mark.parametrize("token", ["", "   ", "two words", "x" * 256])
    def test_malformed_token(self, token: str) -> None:
        with pytest.raises(InvalidScanRequestError):
            admit_ticket(token)

    @pytest.mark.parametrize("persons_entering", [0, -1])
    def test_non_positive_person_count(self, group_ticket: Ticket, persons_entering: int) -> None:
        with pytest.raises(InvalidScanRequestError):
            admit_ticket(group_ticket.token, persons_entering=persons_entering)

        group_ticket.refresh_from_db()
        assert group_ticket.admitted_count == 0


class FakeDriverError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(sqlstate)
        self.sqlstate = sqlstate


def database_error(sqlstate: str) -> OperationalError:
    error = OperationalError(f"SQLSTATE {sqlstate}")
    error.__cause__ = FakeDriverError(sqlstate)
    return error


class TestConflictHandling:
    def test_serialization_conflict_is_retried(self, individual_ticket: Ticket) -> None:
        real_admit_once = admission_service._admit_once
        calls: list[t.Any] = []

        def flaky(*args: t.Any) -> t.Any:
            calls.append(args)
            if len(calls) == 1:
                raise database_error("40001")
            return real_admit_once(*args)

        with patch.object(admission_service, "_admit_once", side_effect=flaky):
            result = admit_ticket(individual_ticket.token)

        assert len(calls) == 2
        assert result.now_admitted == 1

    def test_exhausted_retries_surface_as_unavailable(self, individual_ticket: Ticket, settings: t.Any) -> None:
        settings.ADMISSION_CONFLICT_RETRIES = 1

        with (
            patch.object(admission_service, "_admit_once", side_effect=database_error("40P01")) as admit_once,
            pytest.raises(AdmissionUnavailableError) as exc_info,
        ):
            admit_ticket(individual_ticket.token)

        assert admit_once.call_count == 2
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True

    def test_lock_timeout_is_not_retried(self, individual_ticket: Ticket) -> None:
        with (
            patch.object(admission_service, "_admit_once", side_effect=database_error("55P03")) as admit_once,
            pytest.raises(AdmissionUnavailableError),
        ):
            admit_ticket(individual_ticket.token)

        assert admit_once.call_count == 1

    def test_other_database_errors_propagate(self, individual_ticket: Ticket) -> None:
        with (
            patch.object(admission_service, "_admit_once", side_effect=database_error("08006")),
            pytest.raises(OperationalError),
        ):
            admit_ticket(individual_ticket.token)
