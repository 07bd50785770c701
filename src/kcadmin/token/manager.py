"""Token lifecycle manager -- login, cache, lazy refresh, single-flight.

:class:`TokenManager` owns one set of :class:`~kcadmin.models.Credentials`
and at most one cached :class:`~kcadmin.models.TokenHolder`. Callers only
ever ask for :meth:`~TokenManager.get_access_token`; the manager decides
whether the cached token is good enough, whether to refresh it, or whether
to log in again.

Cache states::

    EMPTY --login--> VALID --time passes--> STALE --refresh/login--> VALID
      ^                                       |
      +------- invalidate() / auth failure ---+

There is no background timer: every transition happens inside a call to
:meth:`~TokenManager.get_access_token`, :meth:`~TokenManager.invalidate`,
or one of the explicit grant methods.

Concurrency:

- The holder is immutable and replaced by reference, so the VALID fast path
  reads it without locking.
- A single :class:`threading.Lock` guards the holder, the in-flight
  :class:`~concurrent.futures.Future`, and a generation counter. It is only
  held for check-and-swap, never across the HTTP exchange.
- The first caller to find the cache EMPTY or STALE installs a future and
  performs the exchange; everyone arriving meanwhile waits on that future
  and receives the same holder or the same exception.
- :meth:`~TokenManager.invalidate` bumps the generation. An exchange started
  under an older generation hands its result to its own waiters but never
  installs it. Callers arriving after the bump wait for that exchange to
  finish before starting their own, so at most one exchange is ever in
  flight.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, wait
from typing import Optional

from kcadmin.clock import Clock, SystemClock
from kcadmin.exceptions import AuthenticationError, ConfigurationError
from kcadmin.models import Credentials, TokenHolder, TokenResponse, TokenState
from kcadmin.token import grants
from kcadmin.token.endpoint import TokenEndpointClient

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_MARGIN = 30.0
"""Seconds subtracted from a token's lifetime before it is considered stale."""

_AUTO = "auto"
_LOGIN = "login"
_REFRESH = "refresh"


class TokenManager:
    """Thread-safe access-token cache for one set of credentials.

    Args:
        credentials: Validated login material.
        endpoint: Client for the realm's token endpoint.
        clock: Time source for expiry decisions. Defaults to
            :class:`~kcadmin.clock.SystemClock`.
        safety_margin: Seconds before the reported expiry at which a token is
            treated as stale. Capped at half of each token's lifetime.

    Raises:
        ConfigurationError: If *safety_margin* is negative.

    Example::

        manager = TokenManager(credentials, TokenEndpointClient(credentials))
        headers = {"Authorization": f"Bearer {manager.get_access_token()}"}
    """

    def __init__(
        self,
        credentials: Credentials,
        endpoint: TokenEndpointClient,
        *,
        clock: Optional[Clock] = None,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
    ) -> None:
        if safety_margin < 0:
            raise ConfigurationError("safety_margin must not be negative")
        self._credentials = credentials
        self._endpoint = endpoint
        self._clock: Clock = clock or SystemClock()
        self._safety_margin = float(safety_margin)

        self._lock = threading.Lock()
        self._holder: Optional[TokenHolder] = None
        self._inflight: Optional[Future[TokenHolder]] = None
        self._inflight_generation = 0
        self._generation = 0

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def safety_margin(self) -> float:
        return self._safety_margin

    @property
    def current(self) -> Optional[TokenHolder]:
        """The cached holder, or ``None`` when the cache is empty."""
        return self._holder

    @property
    def state(self) -> TokenState:
        holder = self._holder
        if holder is None:
            return TokenState.EMPTY
        if holder.is_valid(self._clock.now()):
            return TokenState.VALID
        return TokenState.STALE

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get_access_token(self) -> str:
        """Return a bearer token that is valid right now.

        Returns:
            The access token string.

        Raises:
            AuthenticationError: If the provider rejects the login (after a
                rejected refresh has already fallen back to it).
            TransportError: If the token endpoint cannot be reached.
        """
        holder = self._holder
        if holder is not None and holder.is_valid(self._clock.now()):
            return holder.access_token
        return self._obtain(_AUTO).access_token

    def grant_token(self) -> TokenHolder:
        """Force a full login with the configured grant type."""
        return self._obtain(_LOGIN)

    def refresh_token(self) -> TokenHolder:
        """Force a refresh, falling back to a login when no refresh is possible."""
        return self._obtain(_REFRESH)

    def invalidate(self, access_token: Optional[str] = None) -> None:
        """Drop the cached token without contacting the server.

        Args:
            access_token: When given, the cache is only cleared if it still
                holds this exact token. A caller that saw a 401 for a token
                cannot then evict a newer one installed in the meantime.
        """
        with self._lock:
            holder = self._holder
            if access_token is not None and (
                holder is None or holder.access_token != access_token
            ):
                return
            self._holder = None
            self._generation += 1
        logger.debug("Token cache invalidated")

    def logout(self) -> None:
        """End the server-side session and clear the cache.

        The cache is cleared before the logout request is sent, so it stays
        empty even if the request fails.

        Raises:
            AuthenticationError: If the provider rejects the logout.
            TransportError: If the logout endpoint cannot be reached.
        """
        with self._lock:
            holder = self._holder
            self._holder = None
            self._generation += 1
        if holder is None or not holder.refresh_token:
            return
        logger.info("Logging out of realm %s", self._credentials.realm)
        self._endpoint.logout(grants.logout_params(self._credentials, holder.refresh_token))

    # ------------------------------------------------------------------ #
    # Single-flight machinery
    # ------------------------------------------------------------------ #

    def _obtain(self, mode: str) -> TokenHolder:
        while True:
            with self._lock:
                holder = self._holder
                if mode == _AUTO and holder is not None and holder.is_valid(self._clock.now()):
                    return holder
                future = self._inflight
                if future is None:
                    future = Future()
                    self._inflight = future
                    self._inflight_generation = generation = self._generation
                    break
                current = self._inflight_generation == self._generation

            if current:
                logger.debug("Waiting for in-flight token exchange")
                return future.result()
            # The running exchange predates an invalidation; its outcome is
            # not ours, but it still holds the single slot.
            logger.debug("Waiting for invalidated token exchange to finish")
            wait([future])

        return self._lead(future, generation, holder, mode)

    def _lead(
        self,
        future: Future[TokenHolder],
        generation: int,
        stale: Optional[TokenHolder],
        mode: str,
    ) -> TokenHolder:
        try:
            new_holder = self._exchange(stale, mode)
        except BaseException as exc:
            with self._lock:
                if self._inflight is future:
                    self._inflight = None
                # Rejected credentials leave nothing worth keeping; a
                # transport failure keeps the last known-good holder.
                if isinstance(exc, AuthenticationError) and self._generation == generation:
                    self._holder = None
            future.set_exception(exc)
            raise

        with self._lock:
            if self._inflight is future:
                self._inflight = None
            if self._generation == generation:
                self._holder = new_holder
            else:
                logger.debug("Token obtained before invalidation was not cached")
        future.set_result(new_holder)
        return new_holder

    def _exchange(self, stale: Optional[TokenHolder], mode: str) -> TokenHolder:
        if mode != _LOGIN and stale is not None:
            if stale.can_refresh(self._clock.now()):
                try:
                    return self._refresh(stale.refresh_token or "")
                except AuthenticationError as exc:
                    logger.info(
                        "Refresh rejected (%s), falling back to full login",
                        exc.error or exc,
                    )
            else:
                logger.debug("No usable refresh token, logging in again")
        return self._login()

    def _login(self) -> TokenHolder:
        creds = self._credentials
        logger.info(
            "Requesting token (grant_type=%s, client_id=%s, realm=%s)",
            creds.grant_type.value,
            creds.client_id,
            creds.realm,
        )
        issued_at = self._clock.now()
        response = self._endpoint.request_token(grants.login_grant(creds))
        return self._to_holder(response, issued_at)

    def _refresh(self, refresh_token: str) -> TokenHolder:
        logger.info("Refreshing token for client_id=%s", self._credentials.client_id)
        issued_at = self._clock.now()
        response = self._endpoint.request_token(
            grants.refresh_grant(self._credentials, refresh_token)
        )
        return self._to_holder(response, issued_at)

    def _to_holder(self, response: TokenResponse, issued_at: float) -> TokenHolder:
        holder = TokenHolder.from_response(response, issued_at, self._safety_margin)
        logger.debug("Token acquired (expires in %ss)", response.expires_in)
        return holder
