"""kcadmin -- administrative client for Keycloak-style identity providers.

The package logs in against the identity provider's token endpoint with
OAuth2 credentials, keeps the resulting access token fresh, and attaches it
as a bearer token to every call made against the admin REST API.

Typical usage::

    from kcadmin import Credentials, KeycloakAdmin

    creds = Credentials(
        server_url="https://sso.example.com",
        realm="master",
        client_id="admin-cli",
        username="admin",
        password="secret",
    )
    with KeycloakAdmin(creds) as admin:
        for realm in admin.realms().find_all():
            print(realm.realm)

Modules:
    models: Pydantic models (credentials, token snapshots, representations).
    token: Token endpoint client, grant construction, and the token manager.
    auth: ``httpx.Auth`` bearer injector backed by the token manager.
    client: The owning :class:`KeycloakAdmin` handle.
    resources: Typed admin API resources.
    config: XDG-aware connection profiles and credential sources.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from kcadmin.client import KeycloakAdmin
from kcadmin.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ForbiddenError,
    KcAdminError,
    NotFoundError,
    TransportError,
)
from kcadmin.models import ClientSettings, Credentials, GrantType, TokenHolder
from kcadmin.token import TokenEndpointClient, TokenManager

__all__ = [
    "__version__",
    "ApiError",
    "AuthenticationError",
    "ClientSettings",
    "ConfigurationError",
    "Credentials",
    "ForbiddenError",
    "GrantType",
    "KcAdminError",
    "KeycloakAdmin",
    "NotFoundError",
    "TokenEndpointClient",
    "TokenHolder",
    "TokenManager",
    "TransportError",
]
