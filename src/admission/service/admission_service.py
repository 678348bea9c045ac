"""Scan admission: the booking-scoped transaction around validation and reconciliation.

Every scan runs in one ``transaction.atomic()`` block that locks the owning booking row
before reading any counters. Scans touching the same booking are therefore serialized,
scans for different bookings never wait on each other, and a rejection or failure at any
point leaves nothing behind.
"""

import typing as t
from dataclasses import dataclass
from uuid import UUID

import structlog
from django.conf import settings
from django.db import OperationalError, connection, transaction
from django.utils import timezone

from admission.exceptions import (
    AdmissionError,
    AdmissionUnavailableError,
    CredentialNotFoundError,
    InvalidScanRequestError,
)
from admission.models import Booking, CheckInRecord, Ticket
from admission.service.reconciler import AdmissionPlan, plan_admission
from admission.service.validator import validate_scan

if t.TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

logger = structlog.get_logger(__name__)

MAX_TOKEN_LENGTH = 255

# PostgreSQL SQLSTATEs: serialization_failure, deadlock_detected, lock_not_available
SERIALIZATION_CONFLICT_CODES = frozenset({"40001", "40P01"})
LOCK_NOT_AVAILABLE_CODE = "55P03"


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of a committed scan."""

    ticket: Ticket
    booking: Booking
    plan: AdmissionPlan
    check_in: CheckInRecord

    @property
    def previously_admitted(self) -> int:
        return self.plan.ticket.previous_count

    @property
    def now_admitted(self) -> int:
        return self.plan.ticket.admitted_count

    @property
    def persons_entered(self) -> int:
        return self.plan.persons_entered

    @property
    def remaining(self) -> int:
        return self.ticket.total_persons - self.now_admitted

    @property
    def is_complete(self) -> bool:
        return self.remaining == 0

    @property
    def cascaded_ticket_ids(self) -> list[UUID]:
        return [transition.ticket_id for transition in self.plan.cascaded]

    @property
    def message(self) -> str:
        if self.ticket.is_group:
            return f"Group ticket scanned! {self.persons_entered} person(s) checked in."
        return "Ticket scanned! 1 person checked in."


def clean_token(token: str | None) -> str:
    """Normalize a scanned token, rejecting malformed input before the store is touched."""
    cleaned = (token or "").strip()
    if not cleaned:
        raise InvalidScanRequestError("Ticket token is required.")
    if len(cleaned) > MAX_TOKEN_LENGTH or any(ch.isspace() for ch in cleaned):
        raise InvalidScanRequestError("Ticket token is malformed.")
    return cleaned


def _validate_persons_entering(persons_entering: int | None) -> None:
    if persons_entering is None:
        return
    if isinstance(persons_entering, bool) or not isinstance(persons_entering, int) or persons_entering < 1:
        raise InvalidScanRequestError("Must enter at least 1 person.")


def _sqlstate(exc: OperationalError) -> str | None:
    cause = exc.__cause__
    return getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)


def _set_lock_timeout() -> None:
    """Bound the wait for the booking lock to the current transaction (PostgreSQL only)."""
    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        cursor.execute("SELECT set_config('lock_timeout', %s, true)", [f"{settings.ADMISSION_LOCK_TIMEOUT_MS}ms"])


def _apply_plan(plan: AdmissionPlan, tickets_by_id: dict[UUID, Ticket]) -> list[Ticket]:
    now = timezone.now()
    changed = []
    for transition in plan.transitions:
        ticket = tickets_by_id[transition.ticket_id]
        ticket.admitted_count = transition.admitted_count
        ticket.status = transition.status
        ticket.updated_at = now
        changed.append(ticket)
    Ticket.objects.bulk_update(changed, ["admitted_count", "status", "updated_at"])
    return changed


def _admit_once(token: str, persons_entering: int | None, staff: "AbstractBaseUser | None") -> AdmissionResult:
    with transaction.atomic():
        _set_lock_timeout()

        booking_id = Ticket.objects.filter(token=token).values_list("booking_id", flat=True).first()
        if booking_id is None:
            raise CredentialNotFoundError()

        # Per-booking exclusive lock, held until commit or rollback.
        booking = Booking.objects.select_for_update().get(pk=booking_id)
        tickets = list(Ticket.objects.filter(booking=booking).in_issuance_order())
        ticket = next(candidate for candidate in tickets if candidate.token == token)
        ticket.booking = booking

        validate_scan(ticket, booking)

        children = [
            candidate
            for candidate in tickets
            if candidate.group_id == ticket.id and candidate.kind == Ticket.TicketKind.INDIVIDUAL
        ]
        plan = plan_admission(ticket, children, persons_entering)
        _apply_plan(plan, {candidate.id: candidate for candidate in tickets})

        check_in = CheckInRecord.objects.create(ticket=ticket, staff=staff, persons_entered=plan.persons_entered)

    return AdmissionResult(ticket=ticket, booking=booking, plan=plan, check_in=check_in)


def admit_ticket(
    token: str, persons_entering: int | None = None, staff: "AbstractBaseUser | None" = None
) -> AdmissionResult:
    """Admit persons through the scanned credential.

    Args:
        token: The credential token read from the QR code.
        persons_entering: Explicit number of persons for a group ticket. Ignored for
            individual tickets, which always admit one person.
        staff: The staff user operating the scanner, or None for an unattended kiosk.

    Returns:
        The committed result, including the plan that was applied and the ledger entry.

    Raises:
        InvalidScanRequestError: Malformed token or non-positive person count.
        CredentialNotFoundError: No ticket matches the token.
        BookingStateError: The booking is cancelled, refunded or not confirmed.
        TicketCancelledError: The ticket itself was cancelled.
        AlreadyAdmittedError: The individual ticket has already been used.
        GroupFullyAdmittedError: The group ticket has no remaining capacity.
        AdmissionUnavailableError: The booking lock timed out or serialization
            conflicts exhausted ADMISSION_CONFLICT_RETRIES. Nothing was committed.
    """
    token = clean_token(token)
    _validate_persons_entering(persons_entering)
    attempts = settings.ADMISSION_CONFLICT_RETRIES + 1

    for attempt in range(1, attempts + 1):
        try:
            result = _admit_once(token, persons_entering, staff)
        except AdmissionError as exc:
            logger.info(
                "scan_rejected",
                error_kind=exc.kind.value,
                persons_entering=persons_entering,
                **exc.context,
            )
            raise
        except OperationalError as exc:
            sqlstate = _sqlstate(exc)
            if sqlstate == LOCK_NOT_AVAILABLE_CODE:
                logger.warning("admission_lock_timeout", timeout_ms=settings.ADMISSION_LOCK_TIMEOUT_MS)
                raise AdmissionUnavailableError() from exc
            if sqlstate not in SERIALIZATION_CONFLICT_CODES:
                raise
            if attempt == attempts:
                logger.warning("admission_conflict_exhausted", attempts=attempts, sqlstate=sqlstate)
                raise AdmissionUnavailableError() from exc
            logger.warning("admission_conflict_retry", attempt=attempt, sqlstate=sqlstate)
            continue

        logger.info(
            "ticket_admitted",
            ticket_id=str(result.ticket.id),
            booking_number=result.booking.booking_number,
            kind=result.ticket.kind,
            persons_entered=result.persons_entered,
            now_admitted=result.now_admitted,
            total_persons=result.ticket.total_persons,
            cascaded=len(result.plan.cascaded),
            staff_id=str(staff.pk) if staff is not None else None,
        )
        return result

    raise AdmissionUnavailableError()  # pragma: no cover
