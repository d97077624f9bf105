"""Domain service: Cart Validation.

Checks proposed cart lines against the live catalog: existence, active
status, validity window, price match and quantity bounds. It only reads
from the repositories, so calling it repeatedly is safe.

Checks for a single line run in order and stop at the first failure;
every line is checked, so one call reports all offending lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from jomla.domain.model.cart import Cart
from jomla.domain.model.value_objects import Money
from jomla.domain.repository.offer_repository import OfferRepository
from jomla.domain.repository.product_repository import ProductRepository


class ValidationErrorKind(Enum):
    OFFER_UNAVAILABLE = "offer_unavailable"
    OFFER_CHANGED = "offer_changed"
    QUANTITY_EXCEEDED = "quantity_exceeded"
    PRODUCT_UNAVAILABLE = "product_unavailable"


@dataclass(frozen=True)
class CartValidationIssue:
    kind: ValidationErrorKind
    item_id: str
    message: str
    max_allowed: int | None = None  # the violated bound, for quantity errors


@dataclass(frozen=True)
class CartValidationResult:
    errors: list[CartValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def summary(self) -> str:
        return ", ".join(e.message for e in self.errors)


@dataclass(frozen=True)
class OfferLineCheck:
    """An offer line to check.

    ``discounted_total`` is the snapshotted line total (unit price x
    quantity); when absent, the price check is skipped.
    """

    offer_id: str
    quantity: int
    discounted_total: Money | None = None
    offer_name: str | None = None


@dataclass(frozen=True)
class ProductLineCheck:
    product_id: str
    quantity: int
    product_name: str | None = None


class CartValidator:

    def __init__(
        self,
        offer_repo: OfferRepository,
        product_repo: ProductRepository,
    ) -> None:
        self._offer_repo = offer_repo
        self._product_repo = product_repo

    def validate(
        self,
        offer_lines: list[OfferLineCheck],
        product_lines: list[ProductLineCheck],
        now: datetime,
    ) -> CartValidationResult:
        errors: list[CartValidationIssue] = []
        for line in offer_lines:
            issue = self._check_offer(line, now)
            if issue is not None:
                errors.append(issue)
        for line in product_lines:
            issue = self._check_product(line)
            if issue is not None:
                errors.append(issue)
        return CartValidationResult(errors)

    def validate_cart(self, cart: Cart, now: datetime) -> CartValidationResult:
        """Validate a stored cart, including the snapshotted offer prices."""
        return self.validate(
            [
                OfferLineCheck(
                    offer_id=line.offer_id,
                    quantity=line.quantity,
                    discounted_total=line.discounted_total,
                    offer_name=line.offer_name,
                )
                for line in cart.offers
            ],
            [
                ProductLineCheck(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    product_name=line.product_name,
                )
                for line in cart.products
            ],
            now,
        )

    # --- Per-line checks ------------------------------------------------------

    def _check_offer(self, line: OfferLineCheck, now: datetime) -> CartValidationIssue | None:
        offer = self._offer_repo.get_by_id(line.offer_id)
        if offer is None:
            label = f'Offer "{line.offer_name}"' if line.offer_name else "Offer"
            return CartValidationIssue(
                ValidationErrorKind.OFFER_UNAVAILABLE,
                line.offer_id,
                f"{label} no longer exists",
            )

        name = line.offer_name or offer.name
        if not offer.is_active:
            return CartValidationIssue(
                ValidationErrorKind.OFFER_UNAVAILABLE,
                line.offer_id,
                f'Offer "{name}" is no longer active',
            )
        if offer.not_yet_valid(now):
            return CartValidationIssue(
                ValidationErrorKind.OFFER_UNAVAILABLE,
                line.offer_id,
                f'Offer "{name}" is not yet valid',
            )
        if offer.expired(now):
            return CartValidationIssue(
                ValidationErrorKind.OFFER_UNAVAILABLE,
                line.offer_id,
                f'Offer "{name}" has expired',
            )

        # Compare the implied unit price without dividing: a line total that
        # is not an exact multiple of the current unit price is a change too.
        if line.discounted_total is not None and \
                line.discounted_total.cents != offer.discounted_total.cents * line.quantity:
            return CartValidationIssue(
                ValidationErrorKind.OFFER_CHANGED,
                line.offer_id,
                f'Offer "{name}" price has changed',
            )

        bound = offer.limits.violated_bound(line.quantity)
        if bound is not None:
            return CartValidationIssue(
                ValidationErrorKind.QUANTITY_EXCEEDED,
                line.offer_id,
                _quantity_message("Offer", name, line.quantity, bound),
                max_allowed=bound,
            )
        return None

    def _check_product(self, line: ProductLineCheck) -> CartValidationIssue | None:
        product = self._product_repo.get_by_id(line.product_id)
        if product is None:
            label = f'Product "{line.product_name}"' if line.product_name else "Product"
            return CartValidationIssue(
                ValidationErrorKind.PRODUCT_UNAVAILABLE,
                line.product_id,
                f"{label} no longer exists",
            )

        name = line.product_name or product.name
        if not product.is_available:
            reason = "is out of stock" if product.in_stock is False else "is no longer active"
            return CartValidationIssue(
                ValidationErrorKind.PRODUCT_UNAVAILABLE,
                line.product_id,
                f'Product "{name}" {reason}',
            )

        bound = product.limits.violated_bound(line.quantity)
        if bound is not None:
            return CartValidationIssue(
                ValidationErrorKind.QUANTITY_EXCEEDED,
                line.product_id,
                _quantity_message("Product", name, line.quantity, bound),
                max_allowed=bound,
            )
        return None


def _quantity_message(label: str, name: str, quantity: int, bound: int) -> str:
    which = "Minimum" if quantity < bound else "Maximum"
    return f'{which} quantity for {label.lower()} "{name}" is {bound}'
