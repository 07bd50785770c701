"""Numeric process exit codes used by the ``kcadmin`` CLI.

Each constant maps to one error category and is referenced by the matching
:class:`~kcadmin.exceptions.KcAdminError` subclass, so shell wrappers can
branch on the failure class without parsing stderr.

Example::

    $ kcadmin realms
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the token endpoint rejected the credentials
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""Connection settings or credentials are missing or invalid."""

EXIT_AUTH_FAILURE = 3
"""The identity provider rejected the credentials, or access was forbidden."""

EXIT_NOT_FOUND = 4
"""The requested admin resource does not exist (HTTP 404)."""

EXIT_API_ERROR = 5
"""The admin API answered with an error status."""

EXIT_CONNECTION_ERROR = 6
"""The server could not be reached (timeout, DNS failure, connection refused)."""
