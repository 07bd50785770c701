"""Tests for kcadmin.models -- credential validation and token snapshots."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import SERVER_URL, token_response
from kcadmin.exceptions import ConfigurationError
from kcadmin.models import (
    ClientRepresentation,
    ConnectionProfile,
    Credentials,
    GrantType,
    KeyStoreConfig,
    RealmRepresentation,
    TokenHolder,
    TokenResponse,
    check_grant_type,
)


def _creds(**overrides: object) -> Credentials:
    fields: dict[str, object] = {
        "server_url": SERVER_URL,
        "realm": "master",
        "client_id": "admin-cli",
        "username": "u",
        "password": "p",
    }
    fields.update(overrides)
    return Credentials(**fields)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentials:
    def test_password_grant_is_default(self) -> None:
        assert _creds().grant_type == GrantType.PASSWORD

    def test_trailing_slash_stripped(self) -> None:
        creds = _creds(server_url=f"{SERVER_URL}/")
        assert creds.server_url == SERVER_URL
        assert creds.token_url == f"{SERVER_URL}/realms/master/protocol/openid-connect/token"

    @pytest.mark.parametrize("missing", ["server_url", "realm", "client_id"])
    def test_always_required_fields(self, missing: str) -> None:
        with pytest.raises(ConfigurationError, match=f"{missing} required"):
            _creds(**{missing: None})

    @pytest.mark.parametrize("missing", ["username", "password"])
    def test_password_grant_requires_user_and_password(self, missing: str) -> None:
        with pytest.raises(ConfigurationError, match=f"{missing} required"):
            _creds(**{missing: None})

    def test_client_credentials_requires_secret(self) -> None:
        with pytest.raises(ConfigurationError, match="client_secret required"):
            _creds(grant_type="client_credentials", username=None, password=None)

    def test_client_credentials_without_user(self) -> None:
        creds = _creds(
            grant_type="client_credentials",
            client_secret="s",
            username=None,
            password=None,
        )
        assert creds.grant_type == GrantType.CLIENT_CREDENTIALS

    @pytest.mark.parametrize("grant", ["refresh_token", "authorization_code", ""])
    def test_unrecognised_grant_type_rejected(self, grant: str) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported grant_type"):
            _creds(grant_type=grant)

    def test_frozen(self) -> None:
        creds = _creds()
        with pytest.raises(Exception):
            creds.realm = "other"  # type: ignore[misc]

    def test_secrets_hidden_from_repr(self) -> None:
        text = repr(_creds(password="hunter2", client_secret="topsecret"))
        assert "hunter2" not in text
        assert "topsecret" not in text

    def test_check_grant_type_accepts_enum(self) -> None:
        assert check_grant_type(GrantType.CLIENT_CREDENTIALS) is GrantType.CLIENT_CREDENTIALS

    def test_build_reports_wrong_type_as_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="realm") as info:
            Credentials.build(
                server_url=SERVER_URL, realm=123, client_id="admin-cli", username="u", password="hunter2"
            )
        assert "hunter2" not in str(info.value)
        assert isinstance(info.value.__cause__, ValidationError)

    def test_build_keeps_grant_type_errors(self) -> None:
        with pytest.raises(ConfigurationError, match="password required"):
            Credentials.build(server_url=SERVER_URL, realm="master", client_id="admin-cli", username="u")


# ---------------------------------------------------------------------------
# Token models
# ---------------------------------------------------------------------------


class TestTokenResponse:
    def test_unknown_fields_ignored(self) -> None:
        resp = TokenResponse.model_validate(
            {"access_token": "a", "expires_in": 10, "not-before-policy": 0, "id_token": "x"}
        )
        assert resp.access_token == "a"

    def test_expires_in_defaults(self) -> None:
        assert TokenResponse(access_token="a").expires_in == 3600

    @pytest.mark.parametrize("expires_in", [0, -5])
    def test_non_positive_expires_in_rejected(self, expires_in: int) -> None:
        with pytest.raises(ValidationError):
            TokenResponse(access_token="a", expires_in=expires_in)


class TestTokenHolder:
    def test_expiry_subtracts_margin(self) -> None:
        holder = TokenHolder.from_response(token_response(expires_in=300), issued_at=100.0, safety_margin=30)
        assert holder.expires_at == 370.0
        assert holder.is_valid(369.9)
        assert not holder.is_valid(370.0)

    def test_margin_capped_at_half_lifetime(self) -> None:
        holder = TokenHolder.from_response(token_response(expires_in=20), issued_at=0.0, safety_margin=30)
        assert holder.expires_at == 10.0
        assert holder.is_valid(0.0)

    def test_refresh_expiry_tracked(self) -> None:
        holder = TokenHolder.from_response(
            token_response(refresh_expires_in=1800), issued_at=0.0, safety_margin=5
        )
        assert holder.refresh_expires_at == 1800.0
        assert holder.can_refresh(1799.0)
        assert not holder.can_refresh(1800.0)

    def test_zero_refresh_expiry_means_unbounded(self) -> None:
        holder = TokenHolder.from_response(
            token_response(refresh_expires_in=0), issued_at=0.0, safety_margin=5
        )
        assert holder.refresh_expires_at is None
        assert holder.can_refresh(10**9)

    def test_cannot_refresh_without_refresh_token(self) -> None:
        holder = TokenHolder.from_response(
            token_response(refresh_token=None), issued_at=0.0, safety_margin=5
        )
        assert not holder.can_refresh(0.0)

    def test_token_hidden_from_repr(self) -> None:
        holder = TokenHolder.from_response(token_response(access_token="SECRET-AT"), 0.0, 5)
        assert "SECRET-AT" not in repr(holder)


# ---------------------------------------------------------------------------
# Representations and profiles
# ---------------------------------------------------------------------------


class TestRepresentations:
    def test_camel_case_round_trip(self) -> None:
        client = ClientRepresentation.model_validate(
            {"id": "1", "clientId": "app", "publicClient": True, "attributes": {"a": "b"}}
        )
        assert client.client_id == "app"
        body = client.to_json()
        assert body["clientId"] == "app"
        assert body["publicClient"] is True
        assert body["attributes"] == {"a": "b"}

    def test_none_fields_omitted(self) -> None:
        assert RealmRepresentation(realm="acme").to_json() == {"realm": "acme"}

    def test_keystore_config_aliases(self) -> None:
        config = KeyStoreConfig(format="PKCS12", key_alias="k", store_password="s", key_password="p")
        assert config.to_json() == {
            "format": "PKCS12",
            "keyAlias": "k",
            "storePassword": "s",
            "keyPassword": "p",
        }


class TestConnectionProfile:
    def test_to_credentials_resolves_sources(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KC_PW", "from-env")
        profile = ConnectionProfile(
            name="dev",
            server_url=SERVER_URL,
            username="admin",
            password_source="env:KC_PW",
        )
        creds = profile.to_credentials()
        assert creds.password == "from-env"
        assert creds.client_id == "admin-cli"

    def test_incomplete_profile_fails_on_credentials(self) -> None:
        profile = ConnectionProfile(name="dev", server_url=SERVER_URL, username="admin")
        with pytest.raises(ConfigurationError, match="password required"):
            profile.to_credentials()

    def test_wrong_field_type_fails_on_credentials(self) -> None:
        profile = ConnectionProfile(name="dev", server_url=SERVER_URL, username="admin", password_source="value:p")
        broken = profile.model_copy(update={"realm": ["master"]})
        with pytest.raises(ConfigurationError, match="Invalid credentials"):
            broken.to_credentials()

    def test_bad_grant_type(self) -> None:
        with pytest.raises(ConfigurationError):
            ConnectionProfile(name="dev", server_url=SERVER_URL, grant_type="implicit")
