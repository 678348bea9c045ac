"""Admin classes for Booking, Ticket, and CheckInRecord models."""

import typing as t

from django.contrib import admin
from django.http import HttpRequest
from django.urls import reverse
from django.utils.html import format_html
from django.utils.safestring import mark_safe

from admission import models


class TicketChildrenInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.Ticket
    fk_name = "group"
    fields = ["issuance_sequence", "token", "seat_label", "status", "admitted_count"]
    readonly_fields = ["issuance_sequence", "token", "seat_label", "status", "admitted_count"]
    extra = 0
    can_delete = False
    show_change_link = True
    verbose_name = "Bundled ticket"
    verbose_name_plural = "Bundled tickets"

    def has_add_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False


class TicketInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.Ticket
    fk_name = "booking"
    fields = ["issuance_sequence", "kind", "group", "seat_label", "total_persons", "admitted_count", "status"]
    readonly_fields = ["admitted_count"]
    extra = 0
    show_change_link = True


@admin.register(models.Booking)
class BookingAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["booking_number", "guest_name", "event_title", "status_display", "ticket_count", "created_at"]
    list_filter = ["status", "event_title"]
    search_fields = ["booking_number", "guest_name", "event_title"]
    readonly_fields = ["id", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    inlines = [TicketInline]

    @admin.display(description="Tickets")
    def ticket_count(self, obj: models.Booking) -> int:
        return obj.tickets.count()

    @admin.display(description="Status")
    def status_display(self, obj: models.Booking) -> str:
        colors: dict[t.Any, str] = {
            models.Booking.BookingStatus.PENDING: "orange",
            models.Booking.BookingStatus.CONFIRMED: "green",
            models.Booking.BookingStatus.CANCELLED: "red",
            models.Booking.BookingStatus.REFUNDED: "blue",
        }
        color = colors.get(obj.status, "gray")
        return mark_safe(f'<span style="color: {color};">{obj.get_status_display()}</span>')


@admin.register(models.Ticket)
class TicketAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = [
        "id",
        "booking_link",
        "kind",
        "issuance_sequence",
        "seat_label",
        "admitted_display",
        "status",
    ]
    list_filter = ["kind", "status", "booking__status"]
    search_fields = ["booking__booking_number", "booking__guest_name", "seat_label", "token"]
    autocomplete_fields = ["booking", "group"]
    # Counters are owned by the admission engine.
    readonly_fields = ["id", "admitted_count", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    inlines = [TicketChildrenInline]

    def get_queryset(self, request: HttpRequest) -> t.Any:
        return super().get_queryset(request).select_related("booking")

    @admin.display(description="Booking")
    def booking_link(self, obj: models.Ticket) -> str:
        url = reverse("admin:admission_booking_change", args=[obj.booking_id])
        return format_html('<a href="{}">{}</a>', url, obj.booking.booking_number)

    @admin.display(description="Admitted")
    def admitted_display(self, obj: models.Ticket) -> str:
        return f"{obj.admitted_count}/{obj.total_persons}"


@admin.register(models.CheckInRecord)
class CheckInRecordAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Read-only view of the admission ledger."""

    list_display = ["scanned_at", "ticket", "persons_entered", "staff", "is_correction"]
    list_filter = ["is_correction", "scanned_at"]
    search_fields = ["ticket__booking__booking_number", "staff__username"]
    date_hierarchy = "scanned_at"
    list_select_related = ["ticket__booking", "staff"]

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False
