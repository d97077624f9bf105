"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from jomla.application.dto import (
    Caller,
    CreateOrderRequest,
    DeliveryDetailsInput,
    OrderDTO,
    PickupDetailsInput,
)
from jomla.domain.exceptions import DomainException
from jomla.domain.model.order import OrderStatus
from jomla.infrastructure.bootstrap import AppContext


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (id={dto.id}, status={dto.status})")
    click.echo(f"Customer:    {dto.customer_name}")
    click.echo(f"Fulfilment:  {dto.fulfillment_method}")
    click.echo(f"Created:     {dto.created_at}")
    click.echo()
    click.echo(f"  {'Item':<30} {'Qty':>5} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for line in dto.lines:
        name = f"{line.name} (bundle)" if line.kind == "offer" else line.name
        click.echo(f"  {name:<30} {line.quantity:>5} {line.line_total:>10}")
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Subtotal':<36} {dto.subtotal:>10}")
    click.echo(f"  {'Delivery fee':<36} {dto.delivery_fee:>10}")
    click.echo(f"  {'Tax':<36} {dto.tax:>10}")
    click.echo(f"  {'Order Total':<36} {dto.total:>10}")
    if dto.invoice_url:
        click.echo()
        click.echo(f"Invoice: {dto.invoice_url}")


@click.command("create")
@click.option("--user", "user_id", required=True, help="Customer user ID (owner of the cart).")
@click.option("--method", type=click.Choice(["delivery", "pickup"]), required=True)
@click.option("--address", default=None, help="Delivery street address.")
@click.option("--city", default=None, help="Delivery city.")
@click.option("--postal-code", default=None, help="Delivery postal code.")
@click.option("--notes", default="", help="Delivery notes.")
@click.option("--pickup-time", type=click.DateTime(), default=None, help="Pickup time (UTC).")
@click.pass_obj
def order_create(
    ctx: AppContext,
    user_id: str,
    method: str,
    address: str | None,
    city: str | None,
    postal_code: str | None,
    notes: str,
    pickup_time: datetime | None,
) -> None:
    """Check out a customer's cart."""
    if pickup_time is not None and pickup_time.tzinfo is None:
        pickup_time = pickup_time.replace(tzinfo=timezone.utc)
    request = CreateOrderRequest(
        cart_id=user_id,
        fulfillment_method=method,
        delivery_details=DeliveryDetailsInput(address, city, postal_code, notes)
        if method == "delivery" else None,
        pickup_details=PickupDetailsInput(pickup_time) if method == "pickup" else None,
    )

    try:
        result = ctx.create_order.handle(Caller(uid=user_id), request)
        dto = ctx.show_order.handle(result.order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {result.order_number} created.")
    if result.estimated_delivery:
        click.echo(f"Estimated delivery: {result.estimated_delivery:%Y-%m-%d %H:%M UTC}")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.pass_obj
def order_show(ctx: AppContext, order_id: str) -> None:
    """Show details of an existing order."""
    try:
        dto = ctx.show_order.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--by", "updated_by", default=None, help="Admin uid recorded in the history.")
@click.argument("status", type=click.Choice([s.value for s in OrderStatus]))
@click.pass_obj
def order_status(ctx: AppContext, order_id: str, updated_by: str | None, status: str) -> None:
    """Move an order to a new fulfilment status."""
    try:
        dto = ctx.update_order_status.handle(order_id, status, updated_by=updated_by)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.status}.")
