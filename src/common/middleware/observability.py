"""Request context for structured logs."""

import typing as t
import uuid

import structlog
from django.conf import settings
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"
TERMINAL_ID_HEADER = "X-Terminal-ID"


def get_client_ip(request: HttpRequest) -> str:
    """Return the originating client address, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded_for:
        return str(forwarded_for.split(",")[0].strip())
    return str(request.META.get("REMOTE_ADDR", "unknown"))


class StructlogContextMiddleware:
    """Binds request metadata to every log event emitted while the request is handled.

    Gate terminals may send ``X-Terminal-ID`` so scans from the same device can be
    correlated; ``X-Request-ID`` is reused when present and echoed on the response.
    """

    def __init__(self, get_response: t.Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if not settings.ENABLE_OBSERVABILITY:
            return self.get_response(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        context: dict[str, t.Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.path,
            "ip_address": get_client_ip(request),
        }
        if terminal_id := request.headers.get(TERMINAL_ID_HEADER):
            context["terminal_id"] = terminal_id[:64]
        # Session users only (admin); scanner operators are logged by the admission service
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            context["user_id"] = str(user.pk)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)
        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response[REQUEST_ID_HEADER] = request_id
        return response
