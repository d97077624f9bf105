"""CLI commands for the Product and Offer aggregates."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from jomla.application.dto import OfferItemSpec
from jomla.domain.exceptions import DomainException
from jomla.infrastructure.bootstrap import AppContext


def _parse_items(raw: str) -> list[OfferItemSpec]:
    """Parse 'productId:4.50,productId:3.00' into OfferItemSpec list."""
    specs: list[OfferItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:DiscountedPrice'."
            )
        product_id, price = pair.rsplit(":", 1)
        specs.append(OfferItemSpec(product_id=product_id.strip(), discounted_price=price.strip()))
    return specs


def _utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# --- Products -----------------------------------------------------------------


@click.command("add")
@click.option("--id", "product_id", default=None, help="Product ID (replaces an existing product).")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Base price (e.g. 5.99).")
@click.option("--category", default="", help="Category.")
@click.option("--description", default="", help="Description.")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.option("--out-of-stock", is_flag=True, default=False, help="Mark as out of stock.")
@click.option("--min-qty", default=1, show_default=True, help="Minimum order quantity.")
@click.option("--max-qty", default=999, show_default=True, help="Maximum order quantity.")
@click.pass_obj
def product_add(
    ctx: AppContext,
    product_id: str | None,
    name: str,
    price: str,
    category: str,
    description: str,
    tags: tuple[str, ...],
    out_of_stock: bool,
    min_qty: int,
    max_qty: int,
) -> None:
    """Add a product to the catalog, or replace one."""
    try:
        product = ctx.save_product.handle(
            name=name,
            price=price,
            product_id=product_id,
            category=category,
            description=description,
            tags=tags,
            in_stock=not out_of_stock,
            min_quantity=min_qty,
            max_quantity=max_qty,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' saved at {product.base_price}")


@click.command("list")
@click.pass_obj
def product_list(ctx: AppContext) -> None:
    """List all products in the catalog."""
    products = ctx.products.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<22} {'Name':<24} {'Price':>10} {'Status':<9} {'Stock':<5}")
    click.echo("-" * 74)
    for p in products:
        stock = "yes" if p.in_stock else "no"
        click.echo(f"{p.id:<22} {p.name:<24} {str(p.base_price):>10} {p.status.value:<9} {stock:<5}")


@click.command("status")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.argument("status", type=click.Choice(["active", "inactive"]))
@click.pass_obj
def product_status(ctx: AppContext, product_id: str, status: str) -> None:
    """Activate or deactivate a product."""
    try:
        product = ctx.set_product_status.handle(product_id, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} is now {product.status.value}")


# --- Offers -------------------------------------------------------------------


@click.command("save")
@click.option("--id", "offer_id", default=None, help="Offer ID (replaces an existing offer).")
@click.option("--name", required=True, help="Offer name.")
@click.option("--items", required=True, help="Items as 'ProductId:DiscountedPrice,...'.")
@click.option("--description", default="", help="Description.")
@click.option("--min-qty", default=1, show_default=True, help="Minimum bundles per order.")
@click.option("--max-qty", default=999, show_default=True, help="Maximum bundles per order.")
@click.option("--valid-from", type=click.DateTime(), default=None, help="Start of validity (UTC).")
@click.option("--valid-until", type=click.DateTime(), default=None, help="End of validity (UTC).")
@click.option("--created-by", default="", help="Admin uid recorded on new offers.")
@click.pass_obj
def offer_save(
    ctx: AppContext,
    offer_id: str | None,
    name: str,
    items: str,
    description: str,
    min_qty: int,
    max_qty: int,
    valid_from: datetime | None,
    valid_until: datetime | None,
    created_by: str,
) -> None:
    """Create a draft offer, or replace an existing one."""
    specs = _parse_items(items)

    try:
        offer = ctx.save_offer.handle(
            name=name,
            items=specs,
            offer_id=offer_id,
            description=description,
            min_quantity=min_qty,
            max_quantity=max_qty,
            valid_from=_utc(valid_from),
            valid_until=_utc(valid_until),
            created_by=created_by,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Offer {offer.id} '{offer.name}' saved ({offer.status.value}): "
        f"{offer.discounted_total} (was {offer.original_total}, save {offer.savings_percentage}%)"
    )


@click.command("publish")
@click.option("--id", "offer_id", required=True, help="Offer ID.")
@click.pass_obj
def offer_publish(ctx: AppContext, offer_id: str) -> None:
    """Publish an offer (makes it active)."""
    try:
        offer = ctx.publish_offer.handle(offer_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Offer {offer.id} published.")


@click.command("status")
@click.option("--id", "offer_id", required=True, help="Offer ID.")
@click.argument("status", type=click.Choice(["draft", "active", "inactive"]))
@click.pass_obj
def offer_status(ctx: AppContext, offer_id: str, status: str) -> None:
    """Change an offer's status."""
    try:
        offer = ctx.set_offer_status.handle(offer_id, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Offer {offer.id} is now {offer.status.value}")


@click.command("delete")
@click.option("--id", "offer_id", required=True, help="Offer ID.")
@click.confirmation_option(prompt="Delete this offer? Carts holding it will be flagged.")
@click.pass_obj
def offer_delete(ctx: AppContext, offer_id: str) -> None:
    """Delete an offer."""
    try:
        ctx.delete_offer.handle(offer_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Offer {offer_id} deleted.")


@click.command("list")
@click.pass_obj
def offer_list(ctx: AppContext) -> None:
    """List all offers."""
    offers = ctx.offers.list_all()

    if not offers:
        click.echo("No offers found.")
        return

    click.echo(f"{'ID':<22} {'Name':<24} {'Price':>10} {'Was':>10} {'Status':<9}")
    click.echo("-" * 79)
    for o in offers:
        click.echo(
            f"{o.id:<22} {o.name:<24} {str(o.discounted_total):>10} "
            f"{str(o.original_total):>10} {o.status.value:<9}"
        )
