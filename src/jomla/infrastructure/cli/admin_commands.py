"""CLI commands for administrators and scheduled maintenance."""

from __future__ import annotations

import click

from jomla.domain.exceptions import DomainException
from jomla.infrastructure.bootstrap import AppContext


@click.command("bootstrap")
@click.option("--email", required=True, help="Admin email.")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", default="Admin", show_default=True)
@click.option("--last-name", default="User", show_default=True)
@click.pass_obj
def admin_bootstrap(ctx: AppContext, email: str, password: str, first_name: str, last_name: str) -> None:
    """Create or promote the first super admin."""
    try:
        result = ctx.bootstrap_admin.handle(email, password, first_name, last_name)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{result.message} (uid={result.admin_id})")


@click.command("token")
@click.option("--login", "identifier", required=True, help="Email or phone number.")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_obj
def admin_token(ctx: AppContext, identifier: str, password: str) -> None:
    """Print a bearer ID token for the given credentials."""
    try:
        token = ctx.auth.sign_in(identifier, password)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(token)


@click.command("cleanup-codes")
@click.pass_obj
def maintenance_cleanup_codes(ctx: AppContext) -> None:
    """Clear expired phone verification codes."""
    result = ctx.cleanup_verification_codes.handle()
    if not result.success:
        raise click.ClickException(result.message)
    click.echo(result.message)
