"""HTTP exchange with the identity provider's OpenID Connect token endpoint.

:class:`TokenEndpointClient` is deliberately narrow: it takes a dict of form
parameters, POSTs it, and returns a parsed
:class:`~kcadmin.models.TokenResponse` or raises one of the typed errors
below. It holds no token state; caching and refresh policy live in
:class:`~kcadmin.token.manager.TokenManager`.

Error mapping:

- timeouts and connection failures -> :class:`~kcadmin.exceptions.TransportError`
- HTTP 5xx -> :class:`~kcadmin.exceptions.TransportError`
- HTTP 4xx -> :class:`~kcadmin.exceptions.AuthenticationError` with the
  provider's ``error`` / ``error_description``
- a 2xx body that is not a token -> :class:`~kcadmin.exceptions.TransportError`
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from kcadmin.exceptions import AuthenticationError, TransportError
from kcadmin.models import Credentials, TokenResponse

logger = logging.getLogger(__name__)

_FORM_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/x-www-form-urlencoded",
}


class TokenEndpointClient:
    """Submits grant parameters to the token endpoint of one realm.

    Args:
        credentials: Supplies the server URL and realm of the endpoint.
        http_client: Optional shared :class:`httpx.Client`. When omitted a
            private client is created and closed by :meth:`close`.
        timeout: Timeout for a private client, in seconds.
        verify: TLS verification for a private client (bool or
            :class:`ssl.SSLContext`).

    Example::

        endpoint = TokenEndpointClient(credentials)
        response = endpoint.request_token(password_grant(credentials))
    """

    def __init__(
        self,
        credentials: Credentials,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
        verify: Any = True,
    ) -> None:
        self._token_url = credentials.token_url
        self._logout_url = credentials.logout_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout, verify=verify)

    @property
    def token_url(self) -> str:
        return self._token_url

    def request_token(self, params: dict[str, str]) -> TokenResponse:
        """POST *params* to the token endpoint and parse the answer.

        Args:
            params: Form parameters built by :mod:`kcadmin.token.grants`.

        Returns:
            The parsed :class:`~kcadmin.models.TokenResponse`.

        Raises:
            AuthenticationError: If the provider rejects the grant.
            TransportError: If the exchange cannot complete or the response
                is malformed.
        """
        grant = params.get("grant_type", "?")
        logger.debug("POST %s grant_type=%s", self._token_url, grant)
        response = self._post(self._token_url, params)
        self._raise_for_error(response, grant)

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Token endpoint returned a non-JSON body (HTTP {response.status_code})"
            ) from exc
        if not isinstance(body, dict):
            raise TransportError("Token endpoint returned an unexpected JSON document")
        try:
            return TokenResponse.model_validate(body)
        except ValidationError as exc:
            raise TransportError(f"Malformed token response: {exc.error_count()} invalid field(s)") from exc

    def logout(self, params: dict[str, str]) -> None:
        """End the session bound to the refresh token in *params*.

        Raises:
            AuthenticationError: If the provider rejects the logout.
            TransportError: If the exchange cannot complete.
        """
        logger.debug("POST %s", self._logout_url)
        response = self._post(self._logout_url, params)
        self._raise_for_error(response, "logout")

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _post(self, url: str, params: dict[str, str]) -> httpx.Response:
        try:
            return self._client.post(url, data=params, headers=_FORM_HEADERS)
        except httpx.TimeoutException as exc:
            raise TransportError(f"Token endpoint timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Token endpoint unreachable: {exc}") from exc

    @staticmethod
    def _raise_for_error(response: httpx.Response, grant: str) -> None:
        status = response.status_code
        if status < 400:
            return

        error: Optional[str] = None
        description: Optional[str] = None
        try:
            detail = response.json()
            if isinstance(detail, dict):
                error = detail.get("error")
                description = detail.get("error_description")
        except ValueError:
            pass

        if status >= 500:
            raise TransportError(
                f"Token endpoint failed with HTTP {status}"
                + (f": {error}" if error else "")
            )

        msg = f"Token request ({grant}) rejected with HTTP {status}"
        if error:
            msg += f": {error}"
        if description:
            msg += f" ({description})"
        raise AuthenticationError(
            msg,
            error=error,
            error_description=description,
            status_code=status,
        )
