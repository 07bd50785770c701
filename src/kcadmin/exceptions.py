"""Exception hierarchy for kcadmin.

All exceptions inherit from :class:`KcAdminError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`kcadmin.exit_codes`.
Library callers catch the specific subclasses; the CLI entry point catches
``KcAdminError`` and exits with the matching code.

Subclass hierarchy::

    KcAdminError              (exit 1)
    +-- ConfigurationError    (exit 2)
    +-- AuthenticationError   (exit 3)
    +-- TransportError        (exit 6)
    +-- ApiError              (exit 5)
        +-- NotFoundError     (exit 4)
        +-- ForbiddenError    (exit 3)
"""

from __future__ import annotations

from typing import Optional

from kcadmin.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
)


class KcAdminError(Exception):
    """Base exception for all kcadmin errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(KcAdminError):
    """Raised when credentials or connection settings are missing or invalid.

    Always raised before any network access and never retried.
    """

    exit_code = EXIT_CONFIG_ERROR


class AuthenticationError(KcAdminError):
    """Raised when the token endpoint rejects a grant.

    Carries the provider-reported OAuth2 error code (``invalid_grant``,
    ``invalid_client``, ...) and description when the error body has them.

    Args:
        message: Human-readable error description.
        error: OAuth2 ``error`` code from the response body.
        error_description: OAuth2 ``error_description`` from the response body.
        status_code: HTTP status of the rejected exchange.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.status_code = status_code


class TransportError(KcAdminError):
    """Raised on network-level failures (timeout, DNS, connection refused).

    Also raised when the server answers with a 5xx or a body that cannot be
    parsed, since no usable exchange took place.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ApiError(KcAdminError):
    """Raised when the admin REST API answers with an error status."""

    exit_code = EXIT_API_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ApiError):
    """Raised when the admin API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ForbiddenError(ApiError):
    """Raised when the authenticated caller lacks the required admin role (HTTP 403)."""

    exit_code = EXIT_AUTH_FAILURE
