import click

from jomla.infrastructure.bootstrap import build_context
from jomla.infrastructure.cli.admin_commands import (
    admin_bootstrap,
    admin_token,
    maintenance_cleanup_codes,
)
from jomla.infrastructure.cli.cart_commands import (
    cart_add_offer,
    cart_add_product,
    cart_remove,
    cart_show,
    cart_update,
)
from jomla.infrastructure.cli.catalog_commands import (
    offer_delete,
    offer_list,
    offer_publish,
    offer_save,
    offer_status,
    product_add,
    product_list,
    product_status,
)
from jomla.infrastructure.cli.order_commands import order_create, order_show, order_status
from jomla.infrastructure.config import get_settings
from jomla.infrastructure.logging_config import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Jomla: grocery ordering backend"""
    if ctx.obj is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        ctx.obj = build_context(settings)
        ctx.call_on_close(ctx.obj.close)


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def offer() -> None:
    """Manage bundled offers."""


@cli.group()
def cart() -> None:
    """Inspect and edit customer carts."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def admin() -> None:
    """Manage administrator accounts."""


@cli.group()
def maintenance() -> None:
    """Scheduled maintenance jobs."""


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True)
def serve(host: str, port: int) -> None:
    """Run the HTTP API."""
    import uvicorn

    from jomla.infrastructure.api.app import create_app

    uvicorn.run(create_app(click.get_current_context().obj), host=host, port=port)


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_status)
offer.add_command(offer_delete)
offer.add_command(offer_list)
offer.add_command(offer_publish)
offer.add_command(offer_save)
offer.add_command(offer_status)
cart.add_command(cart_add_offer)
cart.add_command(cart_add_product)
cart.add_command(cart_remove)
cart.add_command(cart_show)
cart.add_command(cart_update)
order.add_command(order_create)
order.add_command(order_show)
order.add_command(order_status)
admin.add_command(admin_bootstrap)
admin.add_command(admin_token)
maintenance.add_command(maintenance_cleanup_codes)
