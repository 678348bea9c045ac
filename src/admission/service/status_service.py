from django.db.models import Prefetch

from admission.exceptions import CredentialNotFoundError
from admission.models import CheckInRecord, Ticket
from admission.service.admission_service import clean_token


def get_admission_status(token: str) -> Ticket:
    """Return the ticket behind a token with its booking and full admission history.

    Read-only. The history is prefetched newest-first as ``ticket.check_ins``.

    Raises:
        InvalidScanRequestError: Blank or malformed token.
        CredentialNotFoundError: No ticket matches the token.
    """
    history = CheckInRecord.objects.newest_first().select_related("staff")
    ticket = (
        Ticket.objects.with_booking()
        .prefetch_related(Prefetch("check_ins", queryset=history))
        .filter(token=clean_token(token))
        .first()
    )
    if ticket is None:
        raise CredentialNotFoundError()
    return ticket
