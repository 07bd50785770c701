"""Form parameters for each OAuth2 grant sent to the token endpoint.

Every builder returns a plain ``dict[str, str]`` ready to be passed as
``data=`` to :mod:`httpx`, which form-urlencodes it. ``client_secret`` is only
included when the credentials carry one, so public clients such as
``admin-cli`` work with the password grant.
"""

from __future__ import annotations

from kcadmin.exceptions import ConfigurationError
from kcadmin.models import Credentials, GrantType


def _client_params(credentials: Credentials) -> dict[str, str]:
    params = {"client_id": credentials.client_id or ""}
    if credentials.client_secret:
        params["client_secret"] = credentials.client_secret
    return params


def password_grant(credentials: Credentials) -> dict[str, str]:
    """Resource-owner password grant."""
    params = {
        "grant_type": GrantType.PASSWORD.value,
        "username": credentials.username or "",
        "password": credentials.password or "",
    }
    params.update(_client_params(credentials))
    return params


def client_credentials_grant(credentials: Credentials) -> dict[str, str]:
    """Client-credentials grant; the secret is mandatory here."""
    if not credentials.client_secret:
        raise ConfigurationError(
            "client_secret required with grant_type=client_credentials"
        )
    return {
        "grant_type": GrantType.CLIENT_CREDENTIALS.value,
        "client_id": credentials.client_id or "",
        "client_secret": credentials.client_secret,
    }


def refresh_grant(credentials: Credentials, refresh_token: str) -> dict[str, str]:
    """Refresh-token grant for a previously issued *refresh_token*."""
    params = {
        "grant_type": GrantType.REFRESH_TOKEN.value,
        "refresh_token": refresh_token,
    }
    params.update(_client_params(credentials))
    return params


def logout_params(credentials: Credentials, refresh_token: str) -> dict[str, str]:
    """Parameters for ending the session bound to *refresh_token*."""
    params = _client_params(credentials)
    params["refresh_token"] = refresh_token
    return params


def login_grant(credentials: Credentials) -> dict[str, str]:
    """Full-login parameters for the grant type configured in *credentials*.

    Raises:
        ConfigurationError: If the configured grant type cannot be used for
            a full login.
    """
    if credentials.grant_type == GrantType.PASSWORD:
        return password_grant(credentials)
    if credentials.grant_type == GrantType.CLIENT_CREDENTIALS:
        return client_credentials_grant(credentials)
    raise ConfigurationError(
        f"grant_type '{credentials.grant_type.value}' cannot be used to log in"
    )
