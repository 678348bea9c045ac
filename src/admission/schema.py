import typing as t
from datetime import datetime
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import Field, PositiveInt

from admission.models import Booking, CheckInRecord, Ticket
from admission.service.admission_service import AdmissionResult
from common.schema import OneToTwoFiftyFiveString


class ScanRequestSchema(Schema):
    token: OneToTwoFiftyFiveString
    persons_entering: PositiveInt | None = Field(
        None, description="Group tickets only. Defaults to every bundled ticket not yet admitted."
    )


class BookingSummarySchema(ModelSchema):
    class Meta:
        model = Booking
        fields = ["booking_number", "guest_name", "event_title", "status"]


class AdmissionResultSchema(Schema):
    """Response for a successful scan."""

    ticket_id: UUID
    kind: Ticket.TicketKind
    total_persons: int
    previously_admitted: int
    now_admitted: int
    remaining: int
    persons_entered: int
    status: t.Literal["partial", "completed"]
    ticket_status: Ticket.TicketStatus
    seat_label: str | None = None
    cascaded_ticket_ids: list[UUID]
    booking: BookingSummarySchema
    message: str

    @staticmethod
    def resolve_ticket_id(obj: AdmissionResult) -> UUID:
        return obj.ticket.id

    @staticmethod
    def resolve_kind(obj: AdmissionResult) -> str:
        return obj.ticket.kind

    @staticmethod
    def resolve_total_persons(obj: AdmissionResult) -> int:
        return obj.ticket.total_persons

    @staticmethod
    def resolve_status(obj: AdmissionResult) -> str:
        return "completed" if obj.is_complete else "partial"

    @staticmethod
    def resolve_ticket_status(obj: AdmissionResult) -> str:
        return obj.ticket.status

    @staticmethod
    def resolve_seat_label(obj: AdmissionResult) -> str | None:
        return obj.ticket.seat_label


class CheckInHistorySchema(Schema):
    time: datetime
    persons_entered: int
    staff_id: int | None = None
    staff_name: str | None = None
    is_correction: bool

    @staticmethod
    def resolve_time(obj: CheckInRecord) -> datetime:
        return obj.scanned_at


class TicketAdmissionStatusSchema(Schema):
    """Read-only admission snapshot of a ticket, with its full scan history (newest first)."""

    ticket_id: UUID
    kind: Ticket.TicketKind
    total_persons: int
    admitted_count: int
    remaining: int
    status: Ticket.TicketStatus
    seat_label: str | None = None
    booking: BookingSummarySchema
    history: list[CheckInHistorySchema]

    @staticmethod
    def resolve_ticket_id(obj: Ticket) -> UUID:
        return obj.id

    @staticmethod
    def resolve_history(obj: Ticket) -> list[CheckInRecord]:
        return list(obj.check_ins.all())


class AdmissionErrorSchema(Schema):
    error_kind: str
    category: str
    retryable: bool
    message: str
    remaining: int | None = None
    admitted: int | None = None
    total: int | None = None
    seat_label: str | None = None
    booking_number: str | None = None
