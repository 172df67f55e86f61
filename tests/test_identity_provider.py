"""Tests for the GoTrue REST adapter, using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from app.services.identity_provider import (
    IdentityProvider,
    ProviderErr,
    ProviderErrorKind,
    ProviderOk,
    parse_error,
)

BASE_URL = "https://provider.test"


def _provider(handler) -> tuple[IdentityProvider, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording), base_url=BASE_URL)
    return IdentityProvider(BASE_URL, "anon-key", client=client), seen


@pytest.mark.asyncio
async def test_sign_in_posts_password_grant():
    body = {
        "access_token": "at",
        "refresh_token": "rt",
        "expires_in": 3600,
        "user": {"id": "user-1", "email": "alice@mindmend.app"},
    }
    provider, seen = _provider(lambda request: httpx.Response(200, json=body))

    result = await provider.sign_in_with_password("alice@mindmend.app", "secret1")

    assert isinstance(result, ProviderOk)
    assert result.session.accessToken == "at"
    assert result.session.userId == "user-1"
    assert result.session.expiresIn == 3600
    request = seen[0]
    assert request.url.path == "/auth/v1/token"
    assert request.url.params["grant_type"] == "password"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["authorization"] == "Bearer anon-key"
    assert json.loads(request.content) == {"email": "alice@mindmend.app", "password": "secret1"}


@pytest.mark.asyncio
async def test_sign_up_sends_metadata_and_redirect():
    provider, seen = _provider(
        lambda request: httpx.Response(200, json={"id": "user-2", "email": "bob@mindmend.app"})
    )

    result = await provider.sign_up(
        "bob@mindmend.app",
        "secret1",
        {"username": "bob", "name": "Bob"},
        "http://localhost:5173/dashboard",
    )

    assert isinstance(result, ProviderOk)
    # 未自动确认时只有 user，没有 access_token
    assert result.session.accessToken is None
    assert result.session.userId == "user-2"
    request = seen[0]
    assert request.url.path == "/auth/v1/signup"
    assert request.url.params["redirect_to"] == "http://localhost:5173/dashboard"
    assert json.loads(request.content) == {
        "email": "bob@mindmend.app",
        "password": "secret1",
        "data": {"username": "bob", "name": "Bob"},
    }


@pytest.mark.asyncio
async def test_sign_up_without_redirect_omits_param():
    provider, seen = _provider(lambda request: httpx.Response(200, json={}))

    result = await provider.sign_up("bob@mindmend.app", "secret1", {"username": "bob", "name": "Bob"})

    assert result == ProviderOk(session=None)
    assert "redirect_to" not in seen[0].url.params


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body, kind, message",
    [
        (400, {"code": 400, "error_code": "invalid_credentials", "msg": "Invalid login credentials"},
         ProviderErrorKind.INVALID_CREDENTIALS, "Invalid login credentials"),
        (400, {"error": "invalid_grant", "error_description": "Email not confirmed"},
         ProviderErrorKind.INVALID_CREDENTIALS, "Email not confirmed"),
        (400, {"error_code": "email_not_confirmed", "msg": "Email not confirmed"},
         ProviderErrorKind.EMAIL_NOT_CONFIRMED, "Email not confirmed"),
        (422, {"error_code": "user_already_exists", "msg": "User already registered"},
         ProviderErrorKind.USER_ALREADY_EXISTS, "User already registered"),
        (422, {"error_code": "weak_password", "msg": "Password should be at least 6 characters."},
         ProviderErrorKind.WEAK_PASSWORD, "Password should be at least 6 characters."),
        (429, {"message": "Too many requests"}, ProviderErrorKind.RATE_LIMITED, "Too many requests"),
        (500, {"msg": "Database error saving new user"}, ProviderErrorKind.UNKNOWN, "Database error saving new user"),
    ],
)
async def test_error_bodies_map_to_kinds(status, body, kind, message):
    provider, _ = _provider(lambda request: httpx.Response(status, json=body))

    result = await provider.sign_in_with_password("alice@mindmend.app", "x")

    assert result == ProviderErr(kind=kind, message=message, status=status)


def test_parse_error_non_json_body_uses_text():
    err = parse_error(httpx.Response(503, text="upstream unavailable"))

    assert err.kind is ProviderErrorKind.UNKNOWN
    assert err.message == "upstream unavailable"
    assert err.status == 503


def test_parse_error_empty_body_uses_status():
    err = parse_error(httpx.Response(502))

    assert err.message == "HTTP 502"


@pytest.mark.asyncio
async def test_network_failure_becomes_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    provider, _ = _provider(handler)

    result = await provider.sign_up("bob@mindmend.app", "secret1", {"username": "bob", "name": "Bob"})

    assert isinstance(result, ProviderErr)
    assert result.kind is ProviderErrorKind.NETWORK
    assert result.status is None


@pytest.mark.asyncio
async def test_health():
    provider, seen = _provider(lambda request: httpx.Response(200, json={"name": "GoTrue"}))

    assert await provider.health() is True
    assert seen[0].url.path == "/auth/v1/health"
    await provider.aclose()
