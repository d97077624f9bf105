"""CLI commands for customer carts."""

from __future__ import annotations

import click

from jomla.application.dto import CartDTO
from jomla.domain.exceptions import DomainException
from jomla.infrastructure.bootstrap import AppContext


def _display_cart(dto: CartDTO) -> None:
    click.echo(f"Cart for {dto.user_id}")
    if not dto.lines:
        click.echo("  (empty)")
        return
    click.echo()
    click.echo(f"  {'Kind':<8} {'ID':<22} {'Name':<24} {'Qty':>5} {'Total':>10}")
    click.echo(f"  {'-'*73}")
    for line in dto.lines:
        flag = "  ! changed" if line.flagged else ""
        click.echo(
            f"  {line.kind:<8} {line.item_id:<22} {line.name:<24} "
            f"{line.quantity:>5} {line.line_total:>10}{flag}"
        )
    click.echo(f"  {'-'*73}")
    click.echo(f"  {'Subtotal':<62} {dto.subtotal:>10}")
    click.echo(f"  {'You save':<62} {dto.total_savings:>10}")
    if dto.has_invalid_items:
        click.echo("  Some offers changed since they were added; checkout will re-validate.")


@click.command("show")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.pass_obj
def cart_show(ctx: AppContext, user_id: str) -> None:
    """Show a customer's cart."""
    _display_cart(ctx.show_cart.handle(user_id))


@click.command("add-offer")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--offer", "offer_id", required=True, help="Offer ID.")
@click.option("--qty", "quantity", default=1, show_default=True, help="Quantity.")
@click.pass_obj
def cart_add_offer(ctx: AppContext, user_id: str, offer_id: str, quantity: int) -> None:
    """Add an offer bundle to a cart."""
    try:
        dto = ctx.add_offer_to_cart.handle(user_id, offer_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(dto)


@click.command("add-product")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--qty", "quantity", default=1, show_default=True, help="Quantity.")
@click.pass_obj
def cart_add_product(ctx: AppContext, user_id: str, product_id: str, quantity: int) -> None:
    """Add a product to a cart."""
    try:
        dto = ctx.add_product_to_cart.handle(user_id, product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(dto)


@click.command("update")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--kind", type=click.Choice(["offer", "product"]), required=True)
@click.option("--id", "item_id", required=True, help="Offer or product ID.")
@click.option("--qty", "quantity", type=int, required=True, help="New quantity.")
@click.pass_obj
def cart_update(ctx: AppContext, user_id: str, kind: str, item_id: str, quantity: int) -> None:
    """Change the quantity of a cart line."""
    try:
        dto = ctx.update_cart_item.handle(user_id, kind, item_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(dto)


@click.command("remove")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--kind", type=click.Choice(["offer", "product"]), required=True)
@click.option("--id", "item_id", required=True, help="Offer or product ID.")
@click.pass_obj
def cart_remove(ctx: AppContext, user_id: str, kind: str, item_id: str) -> None:
    """Remove a line from a cart."""
    try:
        dto = ctx.remove_cart_item.handle(user_id, kind, item_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(dto)
