import typing as t

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q

from common.models import TimeStampedModel

from .booking import Booking


class TicketQuerySet(models.QuerySet["Ticket"]):
    """Custom queryset for Ticket model with common prefetch patterns."""

    def with_booking(self) -> t.Self:
        """Select the owning booking."""
        return self.select_related("booking")

    def in_issuance_order(self) -> t.Self:
        """Order by the persisted issuance sequence (first issued, first consumed)."""
        return self.order_by("issuance_sequence")

    def children_of(self, group: "Ticket") -> t.Self:
        """Return the individual tickets bundled by a group ticket, in issuance order."""
        return self.filter(group=group, kind=Ticket.TicketKind.INDIVIDUAL).in_issuance_order()


class TicketManager(models.Manager["Ticket"]):
    """Custom manager for Ticket with convenience methods for related object selection."""

    def get_queryset(self) -> TicketQuerySet:
        """Get base queryset."""
        return TicketQuerySet(self.model, using=self._db)

    def with_booking(self) -> TicketQuerySet:
        """Returns a queryset with the booking selected."""
        return self.get_queryset().with_booking()

    def in_issuance_order(self) -> TicketQuerySet:
        """Returns a queryset ordered by issuance sequence."""
        return self.get_queryset().in_issuance_order()

    def children_of(self, group: "Ticket") -> TicketQuerySet:
        """Returns the children of a group ticket."""
        return self.get_queryset().children_of(group)


class Ticket(TimeStampedModel):
    """An admission credential.

    INDIVIDUAL tickets admit one person. GROUP ("master") tickets admit
    ``total_persons`` people and bundle the INDIVIDUAL tickets that point at
    them through ``group``. The linkage is fixed at issuance.
    """

    class TicketKind(models.TextChoices):
        INDIVIDUAL = "individual", "Individual"
        GROUP = "group", "Group"

    class TicketStatus(models.TextChoices):
        VALID = "valid", "Valid"
        PARTIALLY_ADMITTED = "partially_admitted", "Partially Admitted"
        ADMITTED = "admitted", "Admitted"
        CANCELLED = "cancelled", "Cancelled"

    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name="tickets")
    token = models.CharField(max_length=255, unique=True, help_text="Opaque credential encoded in the QR code.")
    kind = models.CharField(max_length=20, choices=TicketKind.choices, default=TicketKind.INDIVIDUAL)
    group = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
        help_text="The group ticket bundling this individual ticket, if any.",
    )
    issuance_sequence = models.PositiveIntegerField(
        help_text="Position of this ticket within its booking. Children are consumed in this order."
    )
    total_persons = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    admitted_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=TicketStatus.choices, default=TicketStatus.VALID, db_index=True)
    seat_label = models.CharField(max_length=64, null=True, blank=True)

    objects = TicketManager()

    class Meta:
        ordering = ["booking", "issuance_sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "issuance_sequence"],
                name="unique_ticket_booking_issuance_sequence",
            ),
            models.CheckConstraint(
                condition=Q(total_persons__gte=1),
                name="ticket_total_persons_positive",
            ),
            models.CheckConstraint(
                condition=Q(admitted_count__lte=F("total_persons")),
                name="ticket_admitted_count_within_capacity",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.get_kind_display()} ticket #{self.issuance_sequence} of {self.booking.booking_number}"

    @property
    def is_group(self) -> bool:
        return self.kind == self.TicketKind.GROUP

    @property
    def remaining(self) -> int:
        """Persons this credential can still admit."""
        return max(self.total_persons - self.admitted_count, 0)

    @property
    def is_fully_admitted(self) -> bool:
        return self.status == self.TicketStatus.ADMITTED or self.admitted_count >= self.total_persons

    def clean(self) -> None:
        """Validate the admission invariants and the group/child linkage."""
        super().clean()
        if self.admitted_count > self.total_persons:
            raise DjangoValidationError({"admitted_count": "Cannot admit more persons than the ticket holds."})
        if self.kind == self.TicketKind.INDIVIDUAL and self.total_persons != 1:
            raise DjangoValidationError({"total_persons": "Individual tickets admit exactly one person."})
        if self.status != self.TicketStatus.CANCELLED:
            expected = status_for(self.admitted_count, self.total_persons)
            if self.status != expected:
                raise DjangoValidationError({"status": f"Status must be '{expected}' for the current admitted count."})
        if self.group_id is not None:
            self._validate_group()

    def _validate_group(self) -> None:
        group = self.group
        assert group is not None
        if self.kind == self.TicketKind.GROUP:
            raise DjangoValidationError({"group": "A group ticket cannot belong to another group."})
        if group.kind != self.TicketKind.GROUP:
            raise DjangoValidationError({"group": "Individual tickets can only be bundled by a group ticket."})
        if group.booking_id != self.booking_id:
            raise DjangoValidationError({"group": "The group ticket must belong to the same booking."})


def status_for(admitted_count: int, total_persons: int) -> str:
    """Derive the admission status from the counters (CANCELLED is never derived)."""
    if admitted_count >= total_persons:
        return Ticket.TicketStatus.ADMITTED
    if admitted_count > 0:
        return Ticket.TicketStatus.PARTIALLY_ADMITTED
    return Ticket.TicketStatus.VALID
