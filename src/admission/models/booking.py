from django.db import models

from common.models import TimeStampedModel


class Booking(TimeStampedModel):
    """One purchase transaction owning one or more tickets.

    Bookings are created and moved between states by the payment collaborator.
    The admission engine only reads them (and locks the row while reconciling).
    """

    class BookingStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"
        REFUNDED = "refunded", "Refunded"

    booking_number = models.CharField(max_length=64, unique=True)
    status = models.CharField(
        max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING, db_index=True
    )
    guest_name = models.CharField(max_length=255, null=True, blank=True)
    event_title = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.booking_number} ({self.status})"

    @property
    def is_confirmed(self) -> bool:
        return self.status == self.BookingStatus.CONFIRMED
