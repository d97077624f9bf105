"""Data Transfer Objects: plain containers that cross layer boundaries.

Inputs are parsed from callable payloads or CLI options by the outer
layers; outputs are what handlers hand back. Money stays in integer cents
here; formatting is left to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from jomla.domain.exceptions import UnauthenticatedError


@dataclass(frozen=True)
class Caller:
    """Authenticated identity attached to a callable request."""

    uid: str
    claims: dict = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return bool(self.claims.get("admin"))


def require_caller(caller: Caller | None, message: str = "User must be authenticated") -> Caller:
    if caller is None or not caller.uid:
        raise UnauthenticatedError(message)
    return caller


# --- Catalog ------------------------------------------------------------------


@dataclass(frozen=True)
class OfferItemSpec:
    """Input: a product to bundle and its price inside the offer."""

    product_id: str
    discounted_price: str  # e.g. "4.50"


# --- Cart validation ----------------------------------------------------------


@dataclass(frozen=True)
class ValidationErrorDTO:
    type: str
    item_id: str
    message: str
    max_allowed: int | None = None


@dataclass(frozen=True)
class CartValidationDTO:
    is_valid: bool
    errors: list[ValidationErrorDTO]


# --- Order creation -----------------------------------------------------------


@dataclass(frozen=True)
class DeliveryDetailsInput:
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    notes: str = ""


@dataclass(frozen=True)
class PickupDetailsInput:
    pickup_time: datetime | None = None


@dataclass(frozen=True)
class CreateOrderRequest:
    cart_id: str | None
    fulfillment_method: str | None
    delivery_details: DeliveryDetailsInput | None = None
    pickup_details: PickupDetailsInput | None = None


@dataclass(frozen=True)
class CreateOrderResult:
    order_id: str
    order_number: str
    total: int  # cents
    estimated_delivery: datetime | None = None


# --- Read models --------------------------------------------------------------


@dataclass(frozen=True)
class LineDTO:
    """One offer or product line as displayed to the user."""

    kind: str  # "offer" | "product"
    item_id: str
    name: str
    quantity: int
    line_total: str  # formatted, e.g. "$15.00"
    flagged: bool = False


@dataclass(frozen=True)
class CartDTO:
    user_id: str
    lines: list[LineDTO]
    subtotal: str
    total_savings: str
    total: str
    has_invalid_items: bool
    invalid_offer_ids: list[str]


@dataclass(frozen=True)
class OrderDTO:
    id: str
    order_number: str
    customer_name: str
    status: str
    fulfillment_method: str
    lines: list[LineDTO]
    subtotal: str
    delivery_fee: str
    tax: str
    total: str
    invoice_url: str | None
    created_at: str


# --- Verification & admin -----------------------------------------------------


@dataclass(frozen=True)
class SendCodeResult:
    success: bool
    expires_at: datetime
    attempts_remaining: int


@dataclass(frozen=True)
class VerifyCodeResult:
    success: bool
    custom_token: str | None = None
    reset_token: str | None = None


@dataclass(frozen=True)
class CreateAdminResult:
    success: bool
    admin_id: str
    message: str


@dataclass(frozen=True)
class CleanupResult:
    success: bool
    cleaned: int
    message: str
