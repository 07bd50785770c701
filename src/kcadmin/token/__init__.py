"""Token acquisition and caching.

- :class:`TokenEndpointClient` -- form POST against the realm's token endpoint.
- :mod:`kcadmin.token.grants` -- parameter sets per OAuth2 grant type.
- :class:`TokenManager` -- cached token with lazy refresh and single-flight
  exchanges, consumed by :class:`~kcadmin.auth.BearerAuth`.
"""

from kcadmin.token.endpoint import TokenEndpointClient
from kcadmin.token.manager import DEFAULT_SAFETY_MARGIN, TokenManager

__all__ = ["DEFAULT_SAFETY_MARGIN", "TokenEndpointClient", "TokenManager"]
