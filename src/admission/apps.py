from django.apps import AppConfig


class AdmissionConfig(AppConfig):
    """Ticket admission: bookings, tickets and the check-in ledger."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "admission"
    verbose_name = "Admission"
