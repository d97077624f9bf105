"""Application service: Validate Cart use case.

Checks client-supplied cart lines against the live catalog before
checkout. The lines carry no price snapshot, so only availability,
validity window and quantity bounds are checked.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from jomla.application.boundary import callable_boundary
from jomla.application.dto import Caller, CartValidationDTO, require_caller
from jomla.application.mapping import validation_to_dto
from jomla.domain.service.cart_validator import CartValidator, OfferLineCheck, ProductLineCheck


class ValidateCartHandler:

    def __init__(
        self,
        validator: CartValidator,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._validator = validator
        self._clock = clock

    @callable_boundary("caller", message="Failed to validate cart")
    def handle(
        self,
        caller: Caller | None,
        offer_lines: list[OfferLineCheck],
        product_lines: list[ProductLineCheck],
    ) -> CartValidationDTO:
        require_caller(caller, "User must be authenticated to validate cart")
        result = self._validator.validate(offer_lines, product_lines, self._clock())
        return validation_to_dto(result)
