"""Token endpoints for staff scanner terminals."""

import typing as t

import structlog
from django.contrib.auth.models import AbstractUser
from ninja.errors import HttpError
from ninja_extra import api_controller, route
from ninja_jwt.controller import TokenObtainPairController
from ninja_jwt.schema import TokenObtainPairInputSchema, TokenObtainPairOutputSchema

from common.throttling import AuthThrottle

logger = structlog.get_logger(__name__)


@api_controller("/auth", tags=["Auth"], throttle=AuthThrottle())
class StaffAuthController(TokenObtainPairController):
    @route.post("/token/pair", response=TokenObtainPairOutputSchema, url_name="token_obtain_pair")
    def obtain_token(self, user_token: TokenObtainPairInputSchema) -> TokenObtainPairOutputSchema:
        """Authenticate with username and password to obtain JWT access/refresh tokens.

        Only staff accounts may operate a scanner terminal. The access token is sent as a
        bearer token on check-in requests so every scan is attributed to its operator.
        """
        user = t.cast(AbstractUser, user_token._user)
        if not user.is_staff:
            logger.warning("non_staff_token_request", user_id=str(user.pk))
            raise HttpError(403, "Only staff members can operate scanners.")
        return t.cast(TokenObtainPairOutputSchema, user_token.to_response_schema())  # type: ignore[no-untyped-call]
