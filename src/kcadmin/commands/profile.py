"""Profile commands -- manage saved connection targets.

Typical workflow::

    kcadmin profile add prod --server-url https://sso.example.com \\
        --username admin --password-source env:KC_ADMIN_PASSWORD
    kcadmin profile use prod
    kcadmin token
"""

from __future__ import annotations

from typing import Optional

import typer

from kcadmin.exceptions import KcAdminError
from kcadmin.models import ClientSettings, ConnectionProfile
from kcadmin.output import error, get_output, info, success

profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    server_url: str = typer.Option(..., "--server-url", help="Base URL of the identity provider."),
    realm: str = typer.Option("master", "--realm", help="Realm to log in to."),
    client_id: str = typer.Option("admin-cli", "--client-id", help="OAuth2 client id."),
    grant_type: str = typer.Option(
        "password", "--grant-type", help="password or client_credentials."
    ),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Username (password grant)."),
    password_source: Optional[str] = typer.Option(
        None, "--password-source", help="Password source: env:VAR, file:/path, prompt."
    ),
    client_secret_source: Optional[str] = typer.Option(
        None, "--client-secret-source", help="Client secret source: env:VAR, file:/path, prompt."
    ),
    trust_store: Optional[str] = typer.Option(
        None, "--trust-store", help="PEM CA bundle for the server certificate."
    ),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS verification."),
    timeout: float = typer.Option(30.0, "--timeout", help="Request timeout in seconds."),
) -> None:
    """Create or overwrite a connection profile.

    Secrets are not stored: only the source they are read from at run time.
    """
    from kcadmin.config import save_profile

    try:
        profile = ConnectionProfile(
            name=name,
            server_url=server_url,
            realm=realm,
            client_id=client_id,
            grant_type=grant_type,
            username=username,
            password_source=password_source,
            client_secret_source=client_secret_source,
            settings=ClientSettings(
                timeout=timeout,
                verify_ssl=not insecure,
                trust_store=trust_store,
            ),
        )
        save_profile(profile)
    except KcAdminError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f'Profile "{name}" saved.')


@profile_app.command("list")
def profile_list() -> None:
    """List saved profiles; the default one is marked with ``*``."""
    from kcadmin.config import list_profiles, load_global_config

    names = list_profiles()
    if not names:
        info("No profiles configured.")
        return
    default = load_global_config().default_profile
    output = get_output()
    for name in names:
        output.print_data(f"* {name}" if name == default else f"  {name}")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Print a profile as JSON."""
    from kcadmin.config import load_profile

    try:
        profile = load_profile(name)
    except KcAdminError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    get_output().format_response(profile.model_dump(mode="json"))


@profile_app.command("use")
def profile_use(name: str = typer.Argument(help="Profile name.")) -> None:
    """Make NAME the default profile."""
    from kcadmin.config import load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f"Profile '{name}' not found.")
        raise typer.Exit(code=2)
    config = load_global_config()
    config.default_profile = name
    save_global_config(config)
    success(f'Default profile set to "{name}".')


@profile_app.command("remove")
def profile_remove(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a profile."""
    from kcadmin.config import delete_profile

    try:
        delete_profile(name)
    except KcAdminError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f'Profile "{name}" removed.')
