"""Shared fixtures: a recording fake identity provider and a controller wired to it."""

from __future__ import annotations

import os
from typing import Any

import pytest

os.environ.setdefault("IDENTITY_PROVIDER_JWT_SECRET", "test-secret")
os.environ.setdefault("IDENTITY_EMAIL_DOMAIN", "mindmend.app")
os.environ.setdefault("PROFILE_PRECHECK_ENABLED", "false")

from app.services.auth_service import CredentialOnboardingController  # noqa: E402
from app.services.identity_provider import ProviderOk, ProviderResult  # noqa: E402

REDIRECT_TO = "http://localhost:5173/dashboard"


class FakeIdentityProvider:
    """Records every call and returns canned results."""

    def __init__(
        self,
        sign_in_result: ProviderResult | None = None,
        sign_up_result: ProviderResult | None = None,
    ):
        self.sign_in_result = sign_in_result or ProviderOk()
        self.sign_up_result = sign_up_result or ProviderOk()
        self.sign_in_calls: list[dict[str, Any]] = []
        self.sign_up_calls: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.sign_in_calls) + len(self.sign_up_calls)

    async def sign_in_with_password(self, email: str, password: str) -> ProviderResult:
        self.sign_in_calls.append({"email": email, "password": password})
        return self.sign_in_result

    async def sign_up(
        self,
        email: str,
        password: str,
        data: dict[str, Any],
        email_redirect_to: str | None = None,
    ) -> ProviderResult:
        self.sign_up_calls.append(
            {"email": email, "password": password, "data": data, "email_redirect_to": email_redirect_to}
        )
        return self.sign_up_result


class FakeProfileLookup:
    def __init__(self, taken: set[str] | None = None, error: Exception | None = None):
        self.taken = taken or set()
        self.error = error
        self.calls: list[str] = []

    async def __call__(self, username: str) -> bool:
        self.calls.append(username)
        if self.error is not None:
            raise self.error
        return username in self.taken


def build_controller(provider, profile_lookup=None, **kwargs) -> CredentialOnboardingController:
    kwargs.setdefault("email_domain", "mindmend.app")
    kwargs.setdefault("redirect_target", "/dashboard")
    kwargs.setdefault("email_redirect_to", REDIRECT_TO)
    return CredentialOnboardingController(provider, profile_lookup, **kwargs)


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profiles() -> FakeProfileLookup:
    return FakeProfileLookup()


@pytest.fixture
def controller(provider: FakeIdentityProvider, profiles: FakeProfileLookup) -> CredentialOnboardingController:
    return build_controller(provider, profiles)
