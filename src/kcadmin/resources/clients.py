"""Client collection and single-client resources of a realm."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from kcadmin.exceptions import ApiError
from kcadmin.models import ClientRepresentation, CredentialRepresentation
from kcadmin.resources._paths import id_from_location, segment
from kcadmin.resources.certificates import ClientAttributeCertificateResource

if TYPE_CHECKING:
    from kcadmin.client import KeycloakAdmin


class ClientsResource:
    """``/admin/realms/{realm}/clients``.

    Args:
        admin: The owning client handle.
        realm_path: Path of the parent realm resource.
    """

    def __init__(self, admin: KeycloakAdmin, realm_path: str) -> None:
        self._admin = admin
        self.path = f"{realm_path}/clients"

    def get(self, internal_id: str) -> ClientResource:
        """Bind to one client by its internal id (not its ``clientId``)."""
        return ClientResource(self._admin, f"{self.path}/{segment(internal_id)}")

    def find_all(self) -> list[ClientRepresentation]:
        response = self._admin.request("GET", self.path)
        return [ClientRepresentation.model_validate(item) for item in response.json()]

    def find_by_client_id(self, client_id: str) -> list[ClientRepresentation]:
        """Look up clients by their public ``clientId``."""
        response = self._admin.request("GET", self.path, params={"clientId": client_id})
        return [ClientRepresentation.model_validate(item) for item in response.json()]

    def create(self, client: ClientRepresentation) -> Optional[str]:
        """Create a client and return the internal id the server assigned.

        Returns:
            The id parsed from the ``Location`` header, or ``None`` when the
            server did not send one.
        """
        response = self._admin.request("POST", self.path, json_body=client.to_json())
        location = response.headers.get("Location")
        if not location:
            return None
        return id_from_location(location)


class ClientResource:
    """``/admin/realms/{realm}/clients/{id}``."""

    def __init__(self, admin: KeycloakAdmin, path: str) -> None:
        self._admin = admin
        self.path = path

    def to_representation(self) -> ClientRepresentation:
        response = self._admin.request("GET", self.path)
        return ClientRepresentation.model_validate(response.json())

    def update(self, client: ClientRepresentation) -> None:
        self._admin.request("PUT", self.path, json_body=client.to_json())

    def remove(self) -> None:
        self._admin.request("DELETE", self.path)

    def get_secret(self) -> CredentialRepresentation:
        """Return the current secret of a confidential client.

        Raises:
            ApiError: If the server returned an empty body.
        """
        response = self._admin.request("GET", f"{self.path}/client-secret")
        if not response.content:
            raise ApiError("Empty client-secret response", status_code=response.status_code)
        return CredentialRepresentation.model_validate(response.json())

    def certificates(self, attribute_prefix: str) -> ClientAttributeCertificateResource:
        """Certificate endpoints for an attribute prefix such as ``jwt.credential``."""
        return ClientAttributeCertificateResource(
            self._admin, f"{self.path}/certificates/{segment(attribute_prefix)}"
        )
