"""Application services: cart mutation use cases.

Carts are created lazily on the first add. Every mutation recomputes the
cart aggregates from its lines before saving.
"""

from __future__ import annotations

from jomla.application.dto import CartDTO
from jomla.application.mapping import cart_to_dto
from jomla.domain.exceptions import EntityNotFoundError, FailedPreconditionError, ValidationError
from jomla.domain.model.cart import Cart
from jomla.domain.repository.cart_repository import CartRepository
from jomla.domain.repository.offer_repository import OfferRepository
from jomla.domain.repository.product_repository import ProductRepository

OFFER = "offer"
PRODUCT = "product"


def _load_or_create(cart_repo: CartRepository, user_id: str) -> Cart:
    return cart_repo.get(user_id) or Cart(user_id=user_id)


def _load(cart_repo: CartRepository, user_id: str) -> Cart:
    cart = cart_repo.get(user_id)
    if cart is None:
        raise EntityNotFoundError(f"Cart not found for user '{user_id}'")
    return cart


def _check_kind(kind: str) -> None:
    if kind not in (OFFER, PRODUCT):
        raise ValidationError(f"Unknown cart item kind '{kind}'")


class ShowCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    def handle(self, user_id: str) -> CartDTO:
        return cart_to_dto(_load_or_create(self._cart_repo, user_id))


class AddOfferToCartHandler:

    def __init__(self, cart_repo: CartRepository, offer_repo: OfferRepository) -> None:
        self._cart_repo = cart_repo
        self._offer_repo = offer_repo

    def handle(self, user_id: str, offer_id: str, quantity: int) -> CartDTO:
        offer = self._offer_repo.get_by_id(offer_id)
        if offer is None:
            raise EntityNotFoundError(f"Offer not found: '{offer_id}'")
        if not offer.is_active:
            raise FailedPreconditionError(f'Offer "{offer.name}" is not available')

        cart = _load_or_create(self._cart_repo, user_id)
        cart.add_offer(offer, quantity)
        self._cart_repo.save(cart)
        return cart_to_dto(cart)


class AddProductToCartHandler:

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository) -> None:
        self._cart_repo = cart_repo
        self._product_repo = product_repo

    def handle(self, user_id: str, product_id: str, quantity: int) -> CartDTO:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{product_id}'")
        if not product.is_available:
            raise FailedPreconditionError(f'Product "{product.name}" is not available')

        cart = _load_or_create(self._cart_repo, user_id)
        cart.add_product(product, quantity)
        self._cart_repo.save(cart)
        return cart_to_dto(cart)


class UpdateCartItemHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    def handle(self, user_id: str, kind: str, item_id: str, quantity: int) -> CartDTO:
        """Set a line's quantity; zero or less removes the line."""
        _check_kind(kind)
        cart = _load(self._cart_repo, user_id)
        if kind == OFFER:
            cart.update_offer_quantity(item_id, quantity)
        else:
            cart.update_product_quantity(item_id, quantity)
        self._cart_repo.save(cart)
        return cart_to_dto(cart)


class RemoveCartItemHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    def handle(self, user_id: str, kind: str, item_id: str) -> CartDTO:
        _check_kind(kind)
        cart = _load(self._cart_repo, user_id)
        if kind == OFFER:
            cart.remove_offer(item_id)
        else:
            cart.remove_product(item_id)
        self._cart_repo.save(cart)
        return cart_to_dto(cart)
