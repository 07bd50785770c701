"""The owning admin client handle.

:class:`KeycloakAdmin` ties the pieces together: it owns one
:class:`httpx.Client`, one :class:`~kcadmin.token.manager.TokenManager`
built on the same transport, and hands out typed resource objects
(:meth:`~KeycloakAdmin.realms`, :meth:`~KeycloakAdmin.server_info`, ...)
that issue their calls through :meth:`~KeycloakAdmin.request`.

Every admin request passes through :class:`~kcadmin.auth.BearerAuth`, gets
retried with exponential backoff on 5xx and network errors (when
``max_retries`` is set), and has error statuses mapped to typed exceptions.

The handle is opened explicitly with :meth:`~KeycloakAdmin.open` or by
entering it as a context manager, and must be closed afterwards; a closed
handle cannot be reused.
"""

from __future__ import annotations

import logging
import ssl
import time
from typing import TYPE_CHECKING, Any, Optional, Union

import httpx

from kcadmin.auth import BearerAuth
from kcadmin.clock import Clock
from kcadmin.exceptions import (
    ApiError,
    AuthenticationError,
    ForbiddenError,
    KcAdminError,
    NotFoundError,
    TransportError,
)
from kcadmin.models import ClientSettings, Credentials, GrantType
from kcadmin.token.endpoint import TokenEndpointClient
from kcadmin.token.manager import TokenManager

if TYPE_CHECKING:
    from kcadmin.resources.realms import RealmResource, RealmsResource
    from kcadmin.resources.server_info import ServerInfoResource

logger = logging.getLogger(__name__)


def build_verify(settings: ClientSettings) -> Union[bool, ssl.SSLContext]:
    """Translate TLS settings into an ``httpx`` ``verify`` argument.

    A configured ``trust_store`` (PEM CA bundle) takes precedence over
    ``verify_ssl``.
    """
    if settings.trust_store:
        try:
            return ssl.create_default_context(cafile=settings.trust_store)
        except (OSError, ssl.SSLError) as exc:
            raise KcAdminError(
                f"Unable to load trust store {settings.trust_store}: {exc}"
            ) from exc
    return settings.verify_ssl


class KeycloakAdmin:
    """Administrative client for one identity provider.

    Args:
        credentials: Validated login material.
        settings: HTTP and token-cache settings.
        http_client: Optional pre-configured :class:`httpx.Client`. It is
            used for both admin and token requests and is *not* closed by
            :meth:`close`.
        clock: Time source handed to the token manager.

    Example::

        with KeycloakAdmin(credentials) as admin:
            realm = admin.realm("acme").to_representation()
    """

    def __init__(
        self,
        credentials: Credentials,
        settings: Optional[ClientSettings] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._credentials = credentials
        self._settings = settings or ClientSettings()
        self._clock = clock
        self._owns_client = http_client is None
        self._client: Optional[httpx.Client] = http_client
        self._token_manager: Optional[TokenManager] = None
        self._auth: Optional[BearerAuth] = None
        self._closed = False

    @classmethod
    def get_instance(
        cls,
        server_url: str,
        realm: str,
        username: Optional[str],
        password: Optional[str],
        client_id: str,
        client_secret: Optional[str] = None,
        trust_store: Optional[str] = None,
    ) -> KeycloakAdmin:
        """Build and open a password-grant client in one call."""
        credentials = Credentials.build(
            server_url=server_url,
            realm=realm,
            username=username,
            password=password,
            client_id=client_id,
            client_secret=client_secret,
            grant_type=GrantType.PASSWORD,
        )
        return cls(credentials, ClientSettings(trust_store=trust_store)).open()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> KeycloakAdmin:
        """Create the HTTP client and token manager. Idempotent while open."""
        if self._closed:
            raise KcAdminError("KeycloakAdmin has been closed and cannot be reused")
        if self._token_manager is not None:
            return self

        if self._client is None:
            self._client = httpx.Client(
                timeout=self._settings.timeout,
                verify=build_verify(self._settings),
            )
        endpoint = TokenEndpointClient(self._credentials, http_client=self._client)
        self._token_manager = TokenManager(
            self._credentials,
            endpoint,
            clock=self._clock,
            safety_margin=self._settings.safety_margin,
        )
        self._auth = BearerAuth(self._token_manager)
        return self

    def close(self) -> None:
        """Release the HTTP client. The cached token is dropped, not revoked."""
        if self._token_manager is not None:
            self._token_manager.invalidate()
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None
        self._token_manager = None
        self._auth = None
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> KeycloakAdmin:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    def token_manager(self) -> TokenManager:
        """The token manager backing this client."""
        self._require_open()
        assert self._token_manager is not None
        return self._token_manager

    def realms(self) -> RealmsResource:
        from kcadmin.resources.realms import RealmsResource

        return RealmsResource(self)

    def realm(self, realm_name: str) -> RealmResource:
        return self.realms().realm(realm_name)

    def server_info(self) -> ServerInfoResource:
        from kcadmin.resources.server_info import ServerInfoResource

        return ServerInfoResource(self)

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        accept: str = "application/json",
    ) -> httpx.Response:
        """Send an authenticated admin request.

        Args:
            method: HTTP method.
            path: Path below the server URL (e.g. ``/admin/realms``).
            params: Query parameters.
            json_body: JSON-serialisable request body.
            accept: ``Accept`` header value.

        Returns:
            The successful :class:`httpx.Response`.

        Raises:
            AuthenticationError: On 401 after the bearer retry, or when the
                token itself cannot be obtained.
            ForbiddenError: On 403.
            NotFoundError: On 404.
            ApiError: On any other error status.
            TransportError: On network / timeout errors after all retries.
        """
        self._require_open()
        response = self._execute_with_retry(method, path, params, json_body, accept)
        self._map_response_error(response)
        return response

    def _require_open(self) -> None:
        if self._token_manager is None:
            if self._closed:
                raise KcAdminError("KeycloakAdmin has been closed and cannot be reused")
            raise KcAdminError("KeycloakAdmin is not open -- call open() or use it as a context manager")

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
        json_body: Optional[Any],
        accept: str,
    ) -> httpx.Response:
        """Execute the request, retrying on 5xx and network errors.

        The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None and self._auth is not None

        max_retries = self._settings.max_retries
        kwargs: dict[str, Any] = {
            "method": method,
            "url": f"{self._credentials.server_url}{path}",
            "params": params,
            "headers": {"Accept": accept},
            "auth": self._auth,
        }
        if json_body is not None:
            kwargs["json"] = json_body

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(**kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise TransportError(
                    f"{method} {path} failed after {max_retries + 1} attempt(s): {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"{method} {path} failed: {exc}") from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue
            return response

        raise TransportError(f"{method} {path} failed after all retries")  # pragma: no cover

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = (
                    detail.get("errorMessage")
                    or detail.get("error_description")
                    or detail.get("error")
                    or ""
                )
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status == 401:
            raise AuthenticationError(full_msg, status_code=status)
        if status == 403:
            raise ForbiddenError(full_msg, status_code=status)
        if status == 404:
            raise NotFoundError(full_msg, status_code=status)
        raise ApiError(full_msg, status_code=status)
