"""Typed admin API resources.

Each resource is a small object bound to a :class:`~kcadmin.client.KeycloakAdmin`
handle and a path prefix. Methods map one-to-one to admin REST endpoints,
take and return the pydantic representations from :mod:`kcadmin.models`,
and issue their calls through :meth:`~kcadmin.client.KeycloakAdmin.request`.
"""

from kcadmin.resources.certificates import ClientAttributeCertificateResource
from kcadmin.resources.clients import ClientResource, ClientsResource
from kcadmin.resources.realms import RealmResource, RealmsResource
from kcadmin.resources.server_info import ServerInfoResource

__all__ = [
    "ClientAttributeCertificateResource",
    "ClientResource",
    "ClientsResource",
    "RealmResource",
    "RealmsResource",
    "ServerInfoResource",
]
