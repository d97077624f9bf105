"""Domain → DTO mapping shared by the cart and order handlers."""

from __future__ import annotations

from jomla.application.dto import CartDTO, CartValidationDTO, LineDTO, OrderDTO, ValidationErrorDTO
from jomla.domain.model.cart import Cart
from jomla.domain.model.order import Order
from jomla.domain.service.cart_validator import CartValidationResult


def validation_to_dto(result: CartValidationResult) -> CartValidationDTO:
    return CartValidationDTO(
        is_valid=result.is_valid,
        errors=[
            ValidationErrorDTO(
                type=issue.kind.value,
                item_id=issue.item_id,
                message=issue.message,
                max_allowed=issue.max_allowed,
            )
            for issue in result.errors
        ],
    )


def cart_to_dto(cart: Cart) -> CartDTO:
    lines = [
        LineDTO(
            kind="offer",
            item_id=line.offer_id,
            name=line.offer_name,
            quantity=line.quantity,
            line_total=str(line.discounted_total),
            flagged=line.offer_id in cart.invalid_offer_ids,
        )
        for line in cart.offers
    ]
    lines += [
        LineDTO(
            kind="product",
            item_id=line.product_id,
            name=line.product_name,
            quantity=line.quantity,
            line_total=str(line.total_price),
        )
        for line in cart.products
    ]
    return CartDTO(
        user_id=cart.user_id,
        lines=lines,
        subtotal=str(cart.subtotal),
        total_savings=str(cart.total_savings),
        total=str(cart.total),
        has_invalid_items=cart.has_invalid_items,
        invalid_offer_ids=list(cart.invalid_offer_ids),
    )


def order_to_dto(order: Order) -> OrderDTO:
    lines = [
        LineDTO("offer", line.offer_id, line.offer_name, line.quantity, str(line.discounted_total))
        for line in order.offers
    ]
    lines += [
        LineDTO("product", line.product_id, line.product_name, line.quantity, str(line.total_price))
        for line in order.products
    ]
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        customer_name=order.customer.name,
        status=order.status.value,
        fulfillment_method=order.fulfillment_method.value,
        lines=lines,
        subtotal=str(order.totals.subtotal),
        delivery_fee=str(order.totals.delivery_fee),
        tax=str(order.totals.tax),
        total=str(order.total),
        invoice_url=order.invoice_url,
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
