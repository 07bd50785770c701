"""Server-wide information endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kcadmin.models import ServerInfoRepresentation

if TYPE_CHECKING:
    from kcadmin.client import KeycloakAdmin


class ServerInfoResource:
    """``/admin/serverinfo``."""

    def __init__(self, admin: KeycloakAdmin) -> None:
        self._admin = admin

    def info(self) -> ServerInfoRepresentation:
        response = self._admin.request("GET", "/admin/serverinfo")
        return ServerInfoRepresentation.model_validate(response.json())
