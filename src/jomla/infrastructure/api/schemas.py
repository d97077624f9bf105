"""Request and response payloads of the callable endpoints.

Field names travel in camelCase on the wire; everything is parsed into
the application DTOs before a handler sees it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from jomla.application.dto import (
    CartValidationDTO,
    CreateAdminResult,
    CreateOrderRequest,
    CreateOrderResult,
    DeliveryDetailsInput,
    PickupDetailsInput,
    SendCodeResult,
    VerifyCodeResult,
)
from jomla.domain.model.value_objects import Money
from jomla.domain.service.cart_validator import OfferLineCheck, ProductLineCheck

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(BaseModel, Generic[T]):
    data: T


# --- validateCart -------------------------------------------------------------


class OfferLineSchema(CamelModel):
    offer_id: str
    quantity: int
    discounted_total: Optional[int] = None  # cents, line total
    offer_name: Optional[str] = None


class ProductLineSchema(CamelModel):
    product_id: str
    quantity: int
    product_name: Optional[str] = None


class CartItemsSchema(CamelModel):
    offers: list[OfferLineSchema] = []
    products: list[ProductLineSchema] = []


class ValidateCartData(CamelModel):
    cart_items: CartItemsSchema

    def offer_lines(self) -> list[OfferLineCheck]:
        return [
            OfferLineCheck(
                offer_id=o.offer_id,
                quantity=o.quantity,
                discounted_total=Money(o.discounted_total) if o.discounted_total is not None else None,
                offer_name=o.offer_name,
            )
            for o in self.cart_items.offers
        ]

    def product_lines(self) -> list[ProductLineCheck]:
        return [
            ProductLineCheck(product_id=p.product_id, quantity=p.quantity, product_name=p.product_name)
            for p in self.cart_items.products
        ]


class ValidationErrorSchema(CamelModel):
    type: str
    item_id: str
    message: str
    max_allowed: Optional[int] = None


class ValidateCartResponse(CamelModel):
    is_valid: bool
    errors: list[ValidationErrorSchema]

    @classmethod
    def from_dto(cls, dto: CartValidationDTO) -> ValidateCartResponse:
        return cls(
            is_valid=dto.is_valid,
            errors=[
                ValidationErrorSchema(
                    type=e.type, item_id=e.item_id, message=e.message, max_allowed=e.max_allowed
                )
                for e in dto.errors
            ],
        )


# --- createOrder --------------------------------------------------------------


class DeliveryDetailsSchema(CamelModel):
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    notes: str = ""


class PickupDetailsSchema(CamelModel):
    pickup_time: Optional[datetime] = None


class CreateOrderData(CamelModel):
    cart_id: Optional[str] = None
    fulfillment_method: Optional[str] = None
    delivery_details: Optional[DeliveryDetailsSchema] = None
    pickup_details: Optional[PickupDetailsSchema] = None

    def to_request(self) -> CreateOrderRequest:
        delivery = self.delivery_details
        pickup = self.pickup_details
        return CreateOrderRequest(
            cart_id=self.cart_id,
            fulfillment_method=self.fulfillment_method,
            delivery_details=DeliveryDetailsInput(
                address=delivery.address,
                city=delivery.city,
                postal_code=delivery.postal_code,
                notes=delivery.notes,
            ) if delivery else None,
            pickup_details=PickupDetailsInput(pickup_time=pickup.pickup_time) if pickup else None,
        )


class CreateOrderResponse(CamelModel):
    order_id: str
    order_number: str
    total: int
    estimated_delivery: Optional[datetime] = None

    @classmethod
    def from_dto(cls, dto: CreateOrderResult) -> CreateOrderResponse:
        return cls(
            order_id=dto.order_id,
            order_number=dto.order_number,
            total=dto.total,
            estimated_delivery=dto.estimated_delivery,
        )


# --- Verification -------------------------------------------------------------


class SendCodeData(CamelModel):
    phone_number: Optional[str] = None
    type: Optional[str] = None


class SendCodeResponse(CamelModel):
    success: bool
    expires_at: int  # epoch milliseconds
    attempts_remaining: int

    @classmethod
    def from_dto(cls, dto: SendCodeResult) -> SendCodeResponse:
        return cls(
            success=dto.success,
            expires_at=int(dto.expires_at.timestamp() * 1000),
            attempts_remaining=dto.attempts_remaining,
        )


class VerifyCodeData(CamelModel):
    phone_number: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None


class VerifyCodeResponse(CamelModel):
    success: bool
    custom_token: Optional[str] = None
    reset_token: Optional[str] = None

    @classmethod
    def from_dto(cls, dto: VerifyCodeResult) -> VerifyCodeResponse:
        return cls(success=dto.success, custom_token=dto.custom_token, reset_token=dto.reset_token)


class ResetPasswordData(CamelModel):
    phone_number: Optional[str] = None
    new_password: Optional[str] = None
    verification_token: Optional[str] = None


class SuccessResponse(CamelModel):
    success: bool


# --- Admin --------------------------------------------------------------------


class CreateAdminData(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None


class CreateAdminResponse(CamelModel):
    success: bool
    admin_id: str
    message: str

    @classmethod
    def from_dto(cls, dto: CreateAdminResult) -> CreateAdminResponse:
        return cls(success=dto.success, admin_id=dto.admin_id, message=dto.message)
