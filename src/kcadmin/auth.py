"""Bearer-token injection for outbound admin requests.

:class:`BearerAuth` plugs the :class:`~kcadmin.token.manager.TokenManager`
into :mod:`httpx` as an authentication flow. Every request passing through
an ``httpx.Client(auth=BearerAuth(manager))`` gets a fresh
``Authorization: Bearer <token>`` header, fetched from the manager once per
request.

If the server still answers 401 (the token was revoked server-side, or the
session was ended by an administrator) the flow invalidates exactly the token
it sent and resends the request once with a newly obtained token.
"""

from __future__ import annotations

import logging
from typing import Generator

import httpx

from kcadmin.token.manager import TokenManager

logger = logging.getLogger(__name__)


class BearerAuth(httpx.Auth):
    """``httpx.Auth`` that authenticates requests with the manager's token.

    Args:
        token_manager: Source of access tokens.

    Example::

        client = httpx.Client(auth=BearerAuth(manager))
        client.get("https://sso.example.com/admin/realms")
    """

    requires_request_body = True

    def __init__(self, token_manager: TokenManager) -> None:
        self._token_manager = token_manager

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token_manager.get_access_token()
        request.headers["Authorization"] = f"Bearer {token}"
        response = yield request

        if response.status_code == 401:
            logger.info("Got 401 for %s %s, retrying with a new token", request.method, request.url.path)
            self._token_manager.invalidate(token)
            token = self._token_manager.get_access_token()
            request.headers["Authorization"] = f"Bearer {token}"
            yield request
