"""Admission state machine.

Pure functions over a snapshot of tickets: they compute what a scan would change and
return an ``AdmissionPlan``. Nothing here touches the database or mutates its inputs;
``admission_service`` applies the plan inside the booking-scoped transaction.

Per ticket: VALID -> PARTIALLY_ADMITTED -> ADMITTED. CANCELLED is imposed from outside
and never produced here.
"""

import typing as t
from dataclasses import dataclass
from operator import attrgetter
from uuid import UUID

from admission.exceptions import AlreadyAdmittedError, GroupFullyAdmittedError
from admission.models import Ticket
from admission.models.ticket import status_for


@dataclass(frozen=True)
class TicketTransition:
    """The new counters for one ticket."""

    ticket_id: UUID
    previous_count: int
    admitted_count: int
    status: str


@dataclass(frozen=True)
class AdmissionPlan:
    """Everything a single scan changes: the scanned ticket, cascaded children, the ledger amount."""

    ticket: TicketTransition
    persons_entered: int
    cascaded: tuple[TicketTransition, ...] = ()

    @property
    def transitions(self) -> tuple[TicketTransition, ...]:
        return (self.ticket, *self.cascaded)


def _transition(ticket: Ticket, admitted_count: int) -> TicketTransition:
    return TicketTransition(
        ticket_id=ticket.id,
        previous_count=ticket.admitted_count,
        admitted_count=admitted_count,
        status=status_for(admitted_count, ticket.total_persons),
    )


def _is_pending(child: Ticket) -> bool:
    return child.status != Ticket.TicketStatus.CANCELLED and not child.is_fully_admitted


def plan_individual(ticket: Ticket) -> AdmissionPlan:
    """An individual scan admits exactly one person."""
    if ticket.admitted_count >= ticket.total_persons:
        raise AlreadyAdmittedError(
            seat_label=ticket.seat_label, admitted=ticket.admitted_count, total=ticket.total_persons, remaining=0
        )
    new_count = min(ticket.total_persons, ticket.admitted_count + 1)
    return AdmissionPlan(ticket=_transition(ticket, new_count), persons_entered=1)


def requested_persons(group: Ticket, children: t.Sequence[Ticket], persons_entering: int | None) -> int:
    """How many persons a group scan asks to admit, before clamping.

    An explicit count wins. Without one, every child that has not entered yet is
    assumed to be at the gate; a group without pending children falls back to its
    own remaining capacity.
    """
    if persons_entering:
        return persons_entering
    pending_children = sum(1 for child in children if _is_pending(child))
    return pending_children or group.remaining


def plan_group(group: Ticket, children: t.Sequence[Ticket], persons_entering: int | None = None) -> AdmissionPlan:
    """Admit up to the requested persons through a group ticket and consume its children.

    Children are consumed first-issued-first, skipping those already admitted or
    cancelled; a consumed child is marked fully used rather than incremented.
    """
    clamped = min(requested_persons(group, children, persons_entering), group.remaining)
    if clamped <= 0:
        raise GroupFullyAdmittedError(admitted=group.admitted_count, total=group.total_persons, remaining=0)

    cascaded: list[TicketTransition] = []
    for child in sorted(children, key=attrgetter("issuance_sequence")):
        if len(cascaded) == clamped:
            break
        if _is_pending(child):
            cascaded.append(_transition(child, child.total_persons))

    return AdmissionPlan(
        ticket=_transition(group, group.admitted_count + clamped),
        persons_entered=clamped,
        cascaded=tuple(cascaded),
    )


def plan_admission(
    ticket: Ticket, children: t.Sequence[Ticket] = (), persons_entering: int | None = None
) -> AdmissionPlan:
    """Compute the admission plan for a scanned ticket, dispatching on its kind.

    ``children`` is only consulted for group tickets. ``persons_entering`` is ignored
    for individual tickets, which always admit one person per scan.
    """
    match ticket.kind:
        case Ticket.TicketKind.GROUP:
            return plan_group(ticket, children, persons_entering)
        case Ticket.TicketKind.INDIVIDUAL:
            return plan_individual(ticket)
        case _:
            raise ValueError(f"Unknown ticket kind: {ticket.kind!r}")
