import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("booking_number", models.CharField(max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("guest_name", models.CharField(blank=True, max_length=255, null=True)),
                ("event_title", models.CharField(blank=True, default="", max_length=255)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "token",
                    models.CharField(
                        help_text="Opaque credential encoded in the QR code.", max_length=255, unique=True
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[("individual", "Individual"), ("group", "Group")],
                        default="individual",
                        max_length=20,
                    ),
                ),
                (
                    "issuance_sequence",
                    models.PositiveIntegerField(
                        help_text="Position of this ticket within its booking. Children are consumed in this order."
                    ),
                ),
                (
                    "total_persons",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("admitted_count", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("valid", "Valid"),
                            ("partially_admitted", "Partially Admitted"),
                            ("admitted", "Admitted"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="valid",
                        max_length=20,
                    ),
                ),
                ("seat_label", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="tickets",
                        to="admission.booking",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        help_text="The group ticket bundling this individual ticket, if any.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="admission.ticket",
                    ),
                ),
            ],
            options={
                "ordering": ["booking", "issuance_sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("booking", "issuance_sequence"), name="unique_ticket_booking_issuance_sequence"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_persons__gte", 1)), name="ticket_total_persons_positive"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("admitted_count__lte", models.F("total_persons"))),
                        name="ticket_admitted_count_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CheckInRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "persons_entered",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("scanned_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "is_correction",
                    models.BooleanField(
                        default=False, help_text="Reserved for manual adjustments. Regular scans never set this."
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        help_text="Staff member who scanned the ticket. Empty for unattended kiosks.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="check_ins",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "ticket",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="check_ins",
                        to="admission.ticket",
                    ),
                ),
            ],
            options={
                "ordering": ["-scanned_at", "-id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("persons_entered__gte", 1)), name="check_in_persons_entered_positive"
                    ),
                ],
            },
        ),
    ]
