"""Get JWT tokens for a scanner operator by username."""

import typing as t

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from ninja_jwt.tokens import RefreshToken


class Command(BaseCommand):
    """Get JWT access and refresh tokens for a staff user, e.g. to configure a gate terminal."""

    help = "Get JWT access and refresh tokens for a staff user by username."

    def add_arguments(self, parser: t.Any) -> None:
        """Add command arguments."""
        parser.add_argument(
            "username",
            type=str,
            help="Username of the staff member",
        )

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Generate JWT tokens for the specified user."""
        username = options["username"]

        User = get_user_model()

        try:
            user = User.objects.get(username=username)
        except User.DoesNotExist:
            raise CommandError(f'User "{username}" does not exist')

        if not user.is_staff:
            raise CommandError(f'User "{username}" is not a staff member')

        refresh = RefreshToken.for_user(user)

        self.stdout.write(self.style.SUCCESS(f"\nJWT Tokens for: {user.get_username()}"))
        self.stdout.write(self.style.SUCCESS(f"User ID: {user.pk}"))
        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("Access Token:"))
        self.stdout.write(str(refresh.access_token))  # type: ignore[attr-defined]
        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("Refresh Token:"))
        self.stdout.write(str(refresh))
        self.stdout.write("")
