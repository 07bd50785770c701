"""Canonical Pydantic models shared across all kcadmin modules.

The models fall into three groups:

**Connection models** -- what a caller supplies to log in:
    :class:`GrantType`, :class:`Credentials`, :class:`ClientSettings`.

**Token models** -- what the token endpoint returns and what the token
manager caches:
    :class:`TokenResponse`, :class:`TokenHolder`, :class:`TokenState`.

**Admin representations** -- JSON bodies exchanged with the admin REST API:
    :class:`RealmRepresentation`, :class:`ClientRepresentation`,
    :class:`CredentialRepresentation`, :class:`CertificateRepresentation`,
    :class:`KeyStoreConfig`, :class:`ServerInfoRepresentation`.

**Configuration models** -- persisted as JSON in the config directory:
    :class:`ConnectionProfile`, :class:`GlobalConfig`.

Admin representations use camelCase aliases on the wire and accept unknown
fields, since the server returns far more attributes than are modelled here.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from kcadmin.exceptions import ConfigurationError

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
"""Lifetime assumed when a token response omits ``expires_in``."""


# --- Connection ---


class GrantType(str, enum.Enum):
    """OAuth2 grant types understood by the token endpoint client.

    Callers choose between ``PASSWORD`` and ``CLIENT_CREDENTIALS``;
    ``REFRESH_TOKEN`` is only ever used internally by the token manager.
    """

    PASSWORD = "password"
    CLIENT_CREDENTIALS = "client_credentials"
    REFRESH_TOKEN = "refresh_token"


CALLER_GRANT_TYPES = (GrantType.PASSWORD, GrantType.CLIENT_CREDENTIALS)


def check_grant_type(value: Any) -> GrantType:
    """Validate a caller-supplied grant type.

    Args:
        value: A :class:`GrantType` or its string value.

    Returns:
        The matching :class:`GrantType`.

    Raises:
        ConfigurationError: If *value* is not ``password`` or
            ``client_credentials``.
    """
    try:
        grant = GrantType(value)
    except ValueError:
        grant = None
    if grant not in CALLER_GRANT_TYPES:
        allowed = ", ".join(g.value for g in CALLER_GRANT_TYPES)
        raise ConfigurationError(
            f"Unsupported grant_type '{value}'. Expected one of: {allowed}"
        )
    return grant


class Credentials(BaseModel):
    """Immutable login material for the admin client.

    Validated once at construction: a missing field required by the chosen
    grant type raises :class:`~kcadmin.exceptions.ConfigurationError` before
    any network access happens.

    Example::

        Credentials(
            server_url="https://sso.example.com",
            realm="master",
            client_id="admin-cli",
            username="admin",
            password="secret",
        )
    """

    model_config = ConfigDict(frozen=True)

    server_url: Optional[str] = Field(default=None, description="Base URL of the identity provider")
    realm: Optional[str] = Field(default=None, description="Realm used to log in (not necessarily the one administered)")
    client_id: Optional[str] = Field(default=None, description="OAuth2 client identifier")
    client_secret: Optional[str] = Field(default=None, repr=False)
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None, repr=False)
    grant_type: GrantType = Field(default=GrantType.PASSWORD)

    @field_validator("grant_type", mode="before")
    @classmethod
    def _check_grant_type(cls, value: Any) -> GrantType:
        return check_grant_type(value)

    @field_validator("server_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else value

    @classmethod
    def build(cls, **fields: Any) -> Credentials:
        """Construct credentials, reporting type errors as configuration errors.

        Field values are left out of the message so secrets never reach it.

        Raises:
            ConfigurationError: If a field has the wrong type or a grant-type
                requirement is not met.
        """
        try:
            return cls(**fields)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'credentials'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid credentials: {problems}") from exc

    @model_validator(mode="after")
    def _check_required(self) -> Credentials:
        self.validate_fields()
        return self

    def validate_fields(self) -> None:
        """Check the grant-type invariants.

        Raises:
            ConfigurationError: On the first violated invariant.
        """
        if not self.server_url:
            raise ConfigurationError("server_url required")
        if not self.realm:
            raise ConfigurationError("realm required")
        if self.grant_type == GrantType.PASSWORD:
            if not self.username:
                raise ConfigurationError("username required")
            if not self.password:
                raise ConfigurationError("password required")
        elif self.grant_type == GrantType.CLIENT_CREDENTIALS:
            if not self.client_secret:
                raise ConfigurationError(
                    "client_secret required with grant_type=client_credentials"
                )
        if not self.client_id:
            raise ConfigurationError("client_id required")

    @property
    def token_url(self) -> str:
        return f"{self.server_url}/realms/{self.realm}/protocol/openid-connect/token"

    @property
    def logout_url(self) -> str:
        return f"{self.server_url}/realms/{self.realm}/protocol/openid-connect/logout"


class ClientSettings(BaseModel):
    """HTTP and token-cache settings for a :class:`~kcadmin.client.KeycloakAdmin`."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    trust_store: Optional[str] = Field(
        default=None, description="PEM CA bundle used to verify the server certificate"
    )
    max_retries: int = Field(default=0, ge=0, description="Retries for admin calls on 5xx/network errors")
    safety_margin: float = Field(
        default=30.0, ge=0, description="Seconds before expiry at which a token is refreshed"
    )


# --- Tokens ---


class TokenResponse(BaseModel):
    """Body of a successful token endpoint response.

    Provider-specific fields beyond the ones declared here are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    expires_in: float = Field(default=DEFAULT_TOKEN_LIFETIME_SECONDS, gt=0)
    refresh_token: Optional[str] = None
    refresh_expires_in: Optional[float] = None
    token_type: str = "Bearer"
    scope: Optional[str] = None
    session_state: Optional[str] = None


class TokenState(str, enum.Enum):
    """Cache state of a :class:`~kcadmin.token.manager.TokenManager`."""

    EMPTY = "empty"
    VALID = "valid"
    STALE = "stale"


class TokenHolder(BaseModel):
    """Immutable snapshot of one successful token exchange.

    ``expires_at`` already has the safety margin subtracted, so a holder is
    usable exactly while ``now < expires_at``. Instants are float seconds on
    the clock that produced ``issued_at``.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    token_type: str = "Bearer"
    issued_at: float
    expires_at: float
    refresh_expires_at: Optional[float] = None

    @classmethod
    def from_response(
        cls,
        response: TokenResponse,
        issued_at: float,
        safety_margin: float,
    ) -> TokenHolder:
        """Build a holder from a token response.

        The margin is capped at half the token lifetime so that a token
        shorter-lived than the margin is still usable for a while after
        issue.
        """
        lifetime = float(response.expires_in)
        margin = min(safety_margin, lifetime / 2)
        refresh_expires_at: Optional[float] = None
        # Keycloak reports 0 for offline tokens, which never expire on their own.
        if response.refresh_expires_in:
            refresh_expires_at = issued_at + float(response.refresh_expires_in)
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            token_type=response.token_type,
            issued_at=issued_at,
            expires_at=issued_at + lifetime - margin,
            refresh_expires_at=refresh_expires_at,
        )

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def can_refresh(self, now: float) -> bool:
        """Whether the refresh token can still be exchanged at *now*."""
        if not self.refresh_token:
            return False
        return self.refresh_expires_at is None or now < self.refresh_expires_at


# --- Admin representations ---


class _Representation(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_json(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON body the admin API expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RealmRepresentation(_Representation):
    id: Optional[str] = None
    realm: Optional[str] = None
    display_name: Optional[str] = None
    enabled: Optional[bool] = None


class ClientRepresentation(_Representation):
    id: Optional[str] = None
    client_id: Optional[str] = None
    name: Optional[str] = None
    enabled: Optional[bool] = None
    public_client: Optional[bool] = None
    service_accounts_enabled: Optional[bool] = None
    protocol: Optional[str] = None
    secret: Optional[str] = Field(default=None, repr=False)
    redirect_uris: Optional[list[str]] = None


class CredentialRepresentation(_Representation):
    type: Optional[str] = None
    value: Optional[str] = Field(default=None, repr=False)


class CertificateRepresentation(_Representation):
    private_key: Optional[str] = Field(default=None, repr=False)
    public_key: Optional[str] = None
    certificate: Optional[str] = None
    kid: Optional[str] = None


class KeyStoreConfig(_Representation):
    """Keystore request body for certificate download endpoints."""

    realm_certificate: Optional[bool] = None
    store_password: Optional[str] = Field(default=None, repr=False)
    key_password: Optional[str] = Field(default=None, repr=False)
    key_alias: Optional[str] = None
    realm_alias: Optional[str] = None
    format: Optional[str] = Field(default=None, description="JKS or PKCS12")


class ServerInfoRepresentation(_Representation):
    system_info: Optional[dict[str, Any]] = None
    memory_info: Optional[dict[str, Any]] = None

    @property
    def version(self) -> Optional[str]:
        if self.system_info is None:
            return None
        return self.system_info.get("version")


# --- Configuration ---


class ConnectionProfile(BaseModel):
    """A named, persisted connection target.

    Secrets are never stored directly: ``password_source`` and
    ``client_secret_source`` hold credential source descriptors
    (``env:VAR``, ``file:/path``, ``prompt``, ``value:literal``) that are
    resolved by :func:`kcadmin.config.resolve_credential` when the profile
    is turned into :class:`Credentials`.
    """

    name: str = Field(description="Profile identifier")
    server_url: str
    realm: str = "master"
    client_id: str = "admin-cli"
    grant_type: GrantType = GrantType.PASSWORD
    username: Optional[str] = None
    password_source: Optional[str] = None
    client_secret_source: Optional[str] = None
    settings: ClientSettings = Field(default_factory=ClientSettings)

    @field_validator("grant_type", mode="before")
    @classmethod
    def _check_grant_type(cls, value: Any) -> GrantType:
        return check_grant_type(value)

    def to_credentials(self) -> Credentials:
        """Resolve credential sources and build validated :class:`Credentials`.

        Raises:
            ConfigurationError: If a source cannot be resolved or the
                resulting credentials are incomplete.
        """
        from kcadmin.config import resolve_credential

        password = resolve_credential(self.password_source) if self.password_source else None
        secret = (
            resolve_credential(self.client_secret_source)
            if self.client_secret_source
            else None
        )
        return Credentials.build(
            server_url=self.server_url,
            realm=self.realm,
            client_id=self.client_id,
            client_secret=secret,
            username=self.username,
            password=password,
            grant_type=self.grant_type,
        )


class GlobalConfig(BaseModel):
    """Contents of ``config.json`` in the kcadmin config directory."""

    default_profile: Optional[str] = None
