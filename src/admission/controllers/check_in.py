import typing as t

from django.contrib.auth.models import AbstractBaseUser, AnonymousUser
from ninja.responses import codes_4xx
from ninja_extra import ControllerBase, api_controller, route

from admission import schema
from admission.models import Ticket
from admission.service import admission_service, status_service
from admission.service.admission_service import AdmissionResult
from common.authentication import OptionalAuth
from common.throttling import ScanThrottle


@api_controller("/check-in", auth=OptionalAuth(), tags=["Check-In"])
class CheckInController(ControllerBase):
    """Gate scanning endpoints.

    Staff terminals authenticate with a JWT so their user is recorded on the ledger;
    unattended kiosks call the same endpoints anonymously.
    """

    def maybe_staff(self) -> AbstractBaseUser | None:
        user = t.cast(AbstractBaseUser | AnonymousUser, self.context.request.user)  # type: ignore[union-attr]
        return user if user.is_authenticated else None  # type: ignore[return-value]

    @route.post(
        "/scan",
        url_name="scan_ticket",
        response={
            200: schema.AdmissionResultSchema,
            codes_4xx: schema.AdmissionErrorSchema,
            503: schema.AdmissionErrorSchema,
        },
        throttle=ScanThrottle(),
    )
    def scan_ticket(self, payload: schema.ScanRequestSchema) -> AdmissionResult:
        """Admit the holder of a scanned ticket.

        Individual tickets admit one person. Group tickets admit `persons_entering` people
        (default: every bundled ticket not yet used), clamped to the remaining capacity, and
        mark that many bundled tickets as used in issuance order.

        Rejections carry a machine-readable `error_kind`; `retryable=false` means the
        credential cannot be used and the guest must be sent to the box office.
        """
        return admission_service.admit_ticket(
            payload.token, persons_entering=payload.persons_entering, staff=self.maybe_staff()
        )

    @route.get(
        "/status/{token}",
        url_name="ticket_admission_status",
        response={200: schema.TicketAdmissionStatusSchema, codes_4xx: schema.AdmissionErrorSchema},
    )
    def ticket_admission_status(self, token: str) -> Ticket:
        """Show how many persons a ticket has admitted so far, with the full scan history."""
        return status_service.get_admission_status(token)
