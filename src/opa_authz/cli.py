"""
opa_authz.cli

Operator CLI.

Responsibilities:
- Print the Decision Query for an identity/resource/action without sending it.
- Run a single authorization check against the configured policy engine.
"""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError

from opa_authz.client import PolicyClient
from opa_authz.errors import AccessDenied, OpaError
from opa_authz.models import Action, Principal, Resource
from opa_authz.observability.logging import configure_logging
from opa_authz.query import AllowQuery, encode_query
from opa_authz.settings import get_settings

app = typer.Typer(help="Query an Open Policy Agent endpoint for authorization decisions")

EXIT_ALLOWED = 0
EXIT_DENIED = 1
EXIT_ERROR = 2


def _principal(user: str, groups: list[str] | None) -> Principal:
    return Principal.for_user(user, groups=groups or [])


def _resource(table: str | None, namespace: str | None) -> Resource:
    if table:
        try:
            return Resource.parse(table)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--table") from e
    if namespace:
        return Resource.for_namespace(namespace)
    raise typer.BadParameter("either --table or --namespace is required")


@app.command("query")
def query_cmd(
    user: str = typer.Option(..., "--user", "-u", help="Caller user name"),
    action: Action = typer.Option(..., "--action", "-a", case_sensitive=False),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="ns:table or table"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    group: Optional[list[str]] = typer.Option(None, "--group", "-g"),
) -> None:
    """
    Print the JSON query that would be sent to the policy engine.
    """

    query = AllowQuery.build(_principal(user, group), _resource(table, namespace), action)
    typer.echo(encode_query(query, pretty=True))


@app.command("check")
def check_cmd(
    user: str = typer.Option(..., "--user", "-u", help="Caller user name"),
    action: Action = typer.Option(..., "--action", "-a", case_sensitive=False),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="ns:table or table"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    group: Optional[list[str]] = typer.Option(None, "--group", "-g"),
    policy_url: Optional[str] = typer.Option(None, "--policy-url", help="Overrides settings"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log the query, do not send it"),
) -> None:
    """
    Authorize once. Exit code 0 = allowed, 1 = denied, 2 = error.
    """

    try:
        settings = get_settings()
    except ValidationError as e:
        typer.echo(f"ERROR: invalid settings: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from e
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, json=settings.log_json
    )
    overrides: dict[str, object] = {}
    if policy_url:
        overrides["policy_url"] = policy_url
    if dry_run:
        overrides["dry_run"] = True
    if overrides:
        settings = settings.model_copy(update=overrides)

    principal = _principal(user, group)
    resource = _resource(table, namespace)
    try:
        with PolicyClient.from_settings(settings) as client:
            client.authorize(principal, resource, action)
    except AccessDenied as e:
        typer.echo(f"DENIED: {e.reason}")
        raise typer.Exit(EXIT_DENIED) from e
    except OpaError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from e
    typer.echo("ALLOWED")


def main() -> None:
    app()


# --- Module Notes -----------------------------------------------------------
# `check` uses a fresh client per invocation, so the decision cache never outlives it.
