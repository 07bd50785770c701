"""Shared test fixtures for kcadmin.

Provides a hand-advanced clock, token endpoint doubles, isolated config
directories, output-state resets and a CLI runner. These fixtures are
discovered by pytest and available to every test module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional
from unittest.mock import MagicMock
from urllib.parse import parse_qs

import httpx
import pytest

from kcadmin.models import Credentials, GrantType, TokenResponse
from kcadmin.output import reset_output
from kcadmin.token.endpoint import TokenEndpointClient

SERVER_URL = "https://sso.example.com"
TOKEN_URL = f"{SERVER_URL}/realms/master/protocol/openid-connect/token"
LOGOUT_URL = f"{SERVER_URL}/realms/master/protocol/openid-connect/logout"


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    def set(self, value: float) -> None:
        self._now = value


def token_response(
    access_token: str = "AT1",
    expires_in: int = 60,
    refresh_token: Optional[str] = "RT1",
    **extra: Any,
) -> TokenResponse:
    """Build a parsed token endpoint response."""
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        refresh_token=refresh_token,
        **extra,
    )


def token_json(
    access_token: str = "AT1",
    expires_in: int = 60,
    refresh_token: Optional[str] = "RT1",
    **extra: Any,
) -> dict[str, Any]:
    """Build a raw token endpoint JSON body."""
    body: dict[str, Any] = {
        "access_token": access_token,
        "expires_in": expires_in,
        "token_type": "Bearer",
    }
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    body.update(extra)
    return body


def mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


class FakeKeycloak:
    """In-memory identity provider behind an ``httpx.MockTransport``.

    The token endpoint hands out ``AT1``, ``AT2``, ... on every call. Admin
    routes are registered with :meth:`route` and only answer requests that
    carry a token from :attr:`accepted_tokens`; by default every issued token
    is accepted.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_requests: list[dict[str, list[str]]] = []
        self.issued = 0
        self.accepted_tokens: Optional[set[str]] = None
        self._routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def route(
        self,
        method: str,
        path: str,
        response: httpx.Response | Callable[[httpx.Request], httpx.Response],
    ) -> None:
        if isinstance(response, httpx.Response):
            status, headers, content = response.status_code, response.headers, response.content
            self._routes[(method, path)] = lambda request: httpx.Response(
                status, headers=headers, content=content
            )
        else:
            self._routes[(method, path)] = response

    def client(self) -> httpx.Client:
        return httpx.Client(transport=mock_transport(self.handle))

    @property
    def admin_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/admin")]

    def handle(self, request: httpx.Request) -> httpx.Response:
        # Record a snapshot: httpx auth flows mutate and resend the same object.
        self.requests.append(
            httpx.Request(
                request.method, request.url, headers=request.headers.copy(), content=request.content
            )
        )
        if request.url.path.endswith("/protocol/openid-connect/token"):
            self.token_requests.append(parse_qs(request.content.decode()))
            self.issued += 1
            n = self.issued
            return httpx.Response(200, json=token_json(f"AT{n}", 300, f"RT{n}"))
        if request.url.path.endswith("/protocol/openid-connect/logout"):
            return httpx.Response(204)

        auth = request.headers.get("Authorization", "")
        token = auth[len("Bearer "):] if auth.startswith("Bearer ") else None
        if token is None or (self.accepted_tokens is not None and token not in self.accepted_tokens):
            return httpx.Response(401, json={"error": "HTTP 401 Unauthorized"})

        handler = self._routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "RESTEASY003210: Could not find resource"})
        return handler(request)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches the Rich consoles bound to the streams that
    were current when it was created; CliRunner swaps those streams per
    invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Credentials and token doubles
# ---------------------------------------------------------------------------


@pytest.fixture
def password_credentials() -> Credentials:
    return Credentials(
        server_url=SERVER_URL,
        realm="master",
        client_id="admin-cli",
        username="u",
        password="p",
        grant_type=GrantType.PASSWORD,
    )


@pytest.fixture
def client_credentials() -> Credentials:
    return Credentials(
        server_url=SERVER_URL,
        realm="master",
        client_id="service",
        client_secret="s3cret",
        grant_type=GrantType.CLIENT_CREDENTIALS,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def keycloak() -> FakeKeycloak:
    return FakeKeycloak()


@pytest.fixture
def admin(password_credentials: Credentials, keycloak: FakeKeycloak, clock: FakeClock):
    """An opened :class:`~kcadmin.client.KeycloakAdmin` talking to *keycloak*."""
    from kcadmin.client import KeycloakAdmin

    client = KeycloakAdmin(password_credentials, http_client=keycloak.client(), clock=clock)
    client.open()
    yield client
    client.close()


@pytest.fixture
def endpoint() -> MagicMock:
    """A token endpoint double; script it via ``request_token.side_effect``."""
    mock = MagicMock(spec=TokenEndpointClient)
    mock.request_token.return_value = token_response()
    return mock


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the kcadmin config directory at *tmp_path*.

    Forces the XDG code path, sets ``XDG_CONFIG_HOME`` and clears
    ``KCADMIN_PROFILE`` so tests never touch real user config.
    """
    monkeypatch.setattr("kcadmin.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("KCADMIN_PROFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
