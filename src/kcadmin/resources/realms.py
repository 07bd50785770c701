"""Realm collection and single-realm resources."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kcadmin.models import RealmRepresentation
from kcadmin.resources._paths import segment
from kcadmin.resources.clients import ClientsResource

if TYPE_CHECKING:
    from kcadmin.client import KeycloakAdmin


class RealmsResource:
    """``/admin/realms`` -- list and create realms.

    Example::

        admin.realms().create(RealmRepresentation(realm="acme", enabled=True))
        names = [r.realm for r in admin.realms().find_all()]
    """

    path = "/admin/realms"

    def __init__(self, admin: KeycloakAdmin) -> None:
        self._admin = admin

    def realm(self, realm_name: str) -> RealmResource:
        return RealmResource(self._admin, realm_name)

    def find_all(self) -> list[RealmRepresentation]:
        """Return every realm visible to the authenticated caller."""
        response = self._admin.request("GET", self.path)
        return [RealmRepresentation.model_validate(item) for item in response.json()]

    def create(self, realm: RealmRepresentation) -> None:
        """Create a realm.

        Raises:
            ApiError: With status 409 if the realm already exists.
        """
        self._admin.request("POST", self.path, json_body=realm.to_json())


class RealmResource:
    """``/admin/realms/{realm}``."""

    def __init__(self, admin: KeycloakAdmin, realm_name: str) -> None:
        self._admin = admin
        self._realm_name = realm_name
        self.path = f"{RealmsResource.path}/{segment(realm_name)}"

    @property
    def name(self) -> str:
        return self._realm_name

    def to_representation(self) -> RealmRepresentation:
        response = self._admin.request("GET", self.path)
        return RealmRepresentation.model_validate(response.json())

    def update(self, realm: RealmRepresentation) -> None:
        self._admin.request("PUT", self.path, json_body=realm.to_json())

    def remove(self) -> None:
        self._admin.request("DELETE", self.path)

    def clients(self) -> ClientsResource:
        return ClientsResource(self._admin, self.path)
