"""Typer application and CLI entry point for kcadmin.

Commands::

    kcadmin token                 # print a current access token
    kcadmin realms                # list realms
    kcadmin clients REALM         # list clients of a realm
    kcadmin server-info           # server version and system info
    kcadmin profile add|list|show|use|remove

Every command resolves the active connection profile (see
:func:`kcadmin.config.resolve_profile`), opens a
:class:`~kcadmin.client.KeycloakAdmin` for the duration of the command, and
maps :class:`~kcadmin.exceptions.KcAdminError` to its exit code.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from kcadmin import __version__
from kcadmin.client import KeycloakAdmin
from kcadmin.commands.profile import profile_app
from kcadmin.exceptions import KcAdminError
from kcadmin.output import debug, error, format_response, get_output, print_table

app = typer.Typer(
    name="kcadmin",
    help="Administrative client for Keycloak-style identity providers.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(profile_app, name="profile", help="Manage connection profiles.")

_LOG_HANDLER_ATTR = "_kcadmin_cli_handler"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kcadmin {__version__}")
        raise typer.Exit()


def _enable_debug_logging() -> None:
    """Send library log records to stderr, once per process."""
    logger = logging.getLogger("kcadmin")
    if any(getattr(h, _LOG_HANDLER_ATTR, False) for h in logger.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    setattr(handler, _LOG_HANDLER_ATTR, True)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name to use."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the output manager and stash shared options in ``ctx.obj``."""
    from kcadmin.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        _enable_debug_logging()

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report a :class:`KcAdminError` on stderr and exit with its code."""
    try:
        yield
    except KcAdminError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _open_admin(ctx: typer.Context) -> KeycloakAdmin:
    from kcadmin.config import resolve_profile

    profile = resolve_profile((ctx.obj or {}).get("profile"))
    debug(f"Using profile '{profile.name}' ({profile.server_url})")
    return KeycloakAdmin(profile.to_credentials(), profile.settings)


@app.command("token")
def token_cmd(ctx: typer.Context) -> None:
    """Print a currently valid access token to stdout."""
    with cli_errors(), _open_admin(ctx) as admin:
        get_output().print_data(admin.token_manager().get_access_token())


@app.command("realms")
def realms_cmd(ctx: typer.Context) -> None:
    """List the realms visible to the authenticated caller."""
    with cli_errors(), _open_admin(ctx) as admin:
        realms = admin.realms().find_all()
    rows = [[r.id or "", r.realm or "", str(bool(r.enabled)).lower()] for r in realms]
    print_table(["id", "realm", "enabled"], rows, title="Realms")


@app.command("clients")
def clients_cmd(
    ctx: typer.Context,
    realm: str = typer.Argument(help="Realm whose clients to list."),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="Filter by clientId."),
) -> None:
    """List the clients of REALM."""
    with cli_errors(), _open_admin(ctx) as admin:
        clients = admin.realm(realm).clients()
        found = clients.find_by_client_id(client_id) if client_id else clients.find_all()
    rows = [[c.id or "", c.client_id or "", str(bool(c.enabled)).lower()] for c in found]
    print_table(["id", "clientId", "enabled"], rows, title=f"Clients of {realm}")


@app.command("server-info")
def server_info_cmd(ctx: typer.Context) -> None:
    """Show the server's system information."""
    with cli_errors(), _open_admin(ctx) as admin:
        info = admin.server_info().info()
    format_response(info.system_info or {})


def main() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    main()
