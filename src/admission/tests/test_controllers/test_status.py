"""Tests for the ticket admission status endpoint."""

import orjson
import pytest
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.contrib.auth.models import AbstractUser
from django.test.client import Client
from freezegun import freeze_time
from ninja_jwt.tokens import RefreshToken

from admission.models import Ticket

pytestmark = pytest.mark.django_db

SCAN_URL = reverse("api:scan_ticket")


def status_url(token: str) -> str:
    return reverse("api:ticket_admission_status", kwargs={"token": token})  # type: ignore[no-any-return]


def test_status_with_history(staff_user: AbstractUser, kiosk_client: Client, group_ticket: Ticket) -> None:
    """Test the status projection after two scans, one of them by a staff member."""
    with freeze_time("2026-06-01 19:00:00"):
        refresh = RefreshToken.for_user(staff_user)
        staff_client = Client(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")  # type: ignore[attr-defined]
        payload = orjson.dumps({"token": group_ticket.token, "persons_entering": 1})
        staff_client.post(SCAN_URL, data=payload, content_type="application/json")
    with freeze_time("2026-06-01 19:05:00"):
        payload = orjson.dumps({"token": group_ticket.token, "persons_entering": 2})
        kiosk_client.post(SCAN_URL, data=payload, content_type="application/json")

    response = kiosk_client.get(status_url(group_ticket.token))

    assert response.status_code == 200
    data = response.json()
    assert data["ticket_id"] == str(group_ticket.id)
    assert data["kind"] == "group"
    assert data["total_persons"] == 4
    assert data["admitted_count"] == 3
    assert data["remaining"] == 1
    assert data["status"] == Ticket.TicketStatus.PARTIALLY_ADMITTED
    assert data["booking"]["booking_number"] == "EVT-MASTER"
    assert [entry["persons_entered"] for entry in data["history"]] == [2, 1]
    kiosk_entry, staff_entry = data["history"]
    assert kiosk_entry["staff_id"] is None
    assert kiosk_entry["staff_name"] is None
    assert staff_entry["staff_name"] == "Gate Operator"
    assert staff_entry["is_correction"] is False
    assert staff_entry["time"].startswith("2026-06-01T19:00:00")


def test_status_of_unused_ticket(kiosk_client: Client, individual_ticket: Ticket) -> None:
    """Test the status of a ticket that was never scanned."""
    response = kiosk_client.get(status_url(individual_ticket.token))

    assert response.status_code == 200
    data = response.json()
    assert data["admitted_count"] == 0
    assert data["status"] == Ticket.TicketStatus.VALID
    assert data["seat_label"] == "A-12"
    assert data["history"] == []


def test_status_does_not_mutate(kiosk_client: Client, individual_ticket: Ticket) -> None:
    """Test that reading the status never changes the ticket."""
    kiosk_client.get(status_url(individual_ticket.token))
    kiosk_client.get(status_url(individual_ticket.token))

    individual_ticket.refresh_from_db()
    assert individual_ticket.admitted_count == 0
    assert individual_ticket.status == Ticket.TicketStatus.VALID


def test_status_unknown_token(kiosk_client: Client) -> None:
    """Test the status of a token that matches no ticket."""
    response = kiosk_client.get(status_url("MASTER-unknown"))

    assert response.status_code == 404
    assert response.json()["error_kind"] == "INVALID_CREDENTIAL"
