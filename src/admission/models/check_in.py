from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class CheckInRecordQuerySet(models.QuerySet["CheckInRecord"]):
    def newest_first(self) -> "CheckInRecordQuerySet":
        """Order by scan time, newest first; the auto-increment id breaks timestamp ties."""
        return self.order_by("-scanned_at", "-id")


class CheckInRecord(models.Model):
    """Immutable audit entry, written once per successful scan.

    The integer primary key is monotonic, so insertion order is recoverable even when
    two scans share a timestamp.
    """

    ticket = models.ForeignKey("admission.Ticket", on_delete=models.PROTECT, related_name="check_ins")
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="check_ins",
        help_text="Staff member who scanned the ticket. Empty for unattended kiosks.",
    )
    persons_entered = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    scanned_at = models.DateTimeField(auto_now_add=True, db_index=True)
    is_correction = models.BooleanField(
        default=False,
        help_text="Reserved for manual adjustments. Regular scans never set this.",
    )

    objects = CheckInRecordQuerySet.as_manager()

    class Meta:
        ordering = ["-scanned_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(persons_entered__gte=1),
                name="check_in_persons_entered_positive",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.persons_entered} person(s) via {self.ticket_id} at {self.scanned_at:%Y-%m-%d %H:%M:%S}"

    @property
    def staff_name(self) -> str | None:
        if self.staff is None:
            return None
        return self.staff.get_full_name() or self.staff.get_username()
