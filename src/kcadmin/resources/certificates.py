"""Client certificate endpoints, keyed by certificate attribute prefix.

Certificate *upload* is multipart and not supported here; key info,
generation, and keystore downloads are.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kcadmin.models import CertificateRepresentation, KeyStoreConfig

if TYPE_CHECKING:
    from kcadmin.client import KeycloakAdmin

_OCTET_STREAM = "application/octet-stream"


class ClientAttributeCertificateResource:
    """``/admin/realms/{realm}/clients/{id}/certificates/{attr}``."""

    def __init__(self, admin: KeycloakAdmin, path: str) -> None:
        self._admin = admin
        self.path = path

    def get_key_info(self) -> CertificateRepresentation:
        response = self._admin.request("GET", self.path)
        return CertificateRepresentation.model_validate(response.json())

    def generate(self) -> CertificateRepresentation:
        """Generate a new key pair and certificate, replacing the current one."""
        response = self._admin.request("POST", f"{self.path}/generate")
        return CertificateRepresentation.model_validate(response.json())

    def get_keystore(self, config: KeyStoreConfig) -> bytes:
        """Download a keystore holding the client's private key and certificate."""
        response = self._admin.request(
            "POST",
            f"{self.path}/download",
            json_body=config.to_json(),
            accept=_OCTET_STREAM,
        )
        return response.content

    def generate_and_get_keystore(self, config: KeyStoreConfig) -> bytes:
        """Generate a new key pair and return the private key as a keystore.

        Only the public certificate is kept on the server.
        """
        response = self._admin.request(
            "POST",
            f"{self.path}/generate-and-download",
            json_body=config.to_json(),
            accept=_OCTET_STREAM,
        )
        return response.content
