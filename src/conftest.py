"""
This conftest.py provides fixtures shared by every app's tests.
"""

import secrets
import string
import typing as t

import faker
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AbstractUser
from django.core.cache import cache
from django.test.client import Client
from ninja_jwt.tokens import RefreshToken
from pytest import MonkeyPatch


@pytest.fixture(autouse=True)
def increase_rate_limit(monkeypatch: MonkeyPatch) -> None:
    """Increase the rate limits for the auth and scan throttles to allow testing."""
    monkeypatch.setattr("common.throttling.AuthThrottle.rate", "1000/min")
    monkeypatch.setattr("common.throttling.ScanThrottle.rate", "1000/min")


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Clear the cache before each test so throttle history never leaks between tests."""
    cache.clear()


class StaffUserFactory:
    """Factory for creating scanner operator accounts for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> AbstractUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)))
        email = kwargs.pop("email", f"{username}@staff.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        is_staff = kwargs.pop("is_staff", True)
        return t.cast(
            AbstractUser,
            get_user_model().objects.create_user(
                username=username,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                is_staff=is_staff,
                **kwargs,
            ),
        )

    def __call__(self, **kwargs: t.Any) -> AbstractUser:
        return self.create_user(**kwargs)


@pytest.fixture
def staff_user_factory() -> StaffUserFactory:
    return StaffUserFactory()


@pytest.fixture
def staff_user(staff_user_factory: StaffUserFactory) -> AbstractUser:
    """A gate operator."""
    return staff_user_factory(username="gate.operator", first_name="Gate", last_name="Operator")


@pytest.fixture
def superuser(staff_user_factory: StaffUserFactory) -> AbstractUser:
    """A superuser."""
    return staff_user_factory(is_superuser=True)


@pytest.fixture
def staff_client(staff_user: AbstractUser) -> Client:
    """API client authenticated as the gate operator."""
    refresh = RefreshToken.for_user(staff_user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")  # type: ignore[attr-defined]


@pytest.fixture
def kiosk_client() -> Client:
    """Unauthenticated API client, as used by unattended gate kiosks."""
    return Client()
