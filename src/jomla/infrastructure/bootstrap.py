"""Composition root: build repositories, gateways and handlers from settings.

``build_context`` wires the production collaborators and subscribes the
background handlers to the offer and order triggers. Callers that need a
different collaborator (tests, one-off scripts) build their own handlers
from the pieces instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from jomla.application.cleanup_verification_codes import CleanupVerificationCodesHandler
from jomla.application.create_admin_user import BootstrapSuperAdminHandler, CreateAdminUserHandler
from jomla.application.create_order import CreateOrderHandler
from jomla.application.generate_invoice import GenerateInvoiceHandler
from jomla.application.invalidate_carts import InvalidateCartsOnOfferChangeHandler
from jomla.application.manage_cart import (
    AddOfferToCartHandler,
    AddProductToCartHandler,
    RemoveCartItemHandler,
    ShowCartHandler,
    UpdateCartItemHandler,
)
from jomla.application.manage_catalog import (
    DeleteOfferHandler,
    PublishOfferHandler,
    SaveOfferHandler,
    SaveProductHandler,
    SetOfferStatusHandler,
    SetProductStatusHandler,
)
from jomla.application.notify import SendOfferNotificationHandler, SendOrderStatusNotificationHandler
from jomla.application.reset_password import ResetPasswordHandler
from jomla.application.send_verification_code import SendVerificationCodeHandler
from jomla.application.update_order_status import ShowOrderHandler, UpdateOrderStatusHandler
from jomla.application.validate_cart import ValidateCartHandler
from jomla.application.verify_code import VerifyCodeHandler
from jomla.domain.model.events import OfferChange, OrderChange
from jomla.domain.repository.cart_repository import CartRepository
from jomla.domain.repository.notification_repository import NotificationRepository
from jomla.domain.repository.offer_repository import OfferRepository
from jomla.domain.repository.order_repository import OrderRepository
from jomla.domain.repository.product_repository import ProductRepository
from jomla.domain.repository.user_repository import AdminUserRepository, UserRepository
from jomla.domain.service.cart_validator import CartValidator
from jomla.domain.service.order_number_generator import OrderNumberGenerator
from jomla.infrastructure.config import Settings
from jomla.infrastructure.gateways.http_push import HttpPushGateway
from jomla.infrastructure.gateways.local_auth import LocalAuthGateway
from jomla.infrastructure.gateways.local_storage import LocalBlobStorage
from jomla.infrastructure.gateways.reportlab_invoice import ReportlabInvoiceRenderer
from jomla.infrastructure.gateways.tokens import JwtTokenService
from jomla.infrastructure.gateways.twilio_sms import TwilioSmsGateway
from jomla.infrastructure.persistence.json_cart_repository import JsonCartRepository
from jomla.infrastructure.persistence.json_catalog_repository import (
    JsonOfferRepository,
    JsonProductRepository,
)
from jomla.infrastructure.persistence.json_order_repository import (
    JsonCounterRepository,
    JsonOrderRepository,
)
from jomla.infrastructure.persistence.json_store import JsonDocumentStore
from jomla.infrastructure.persistence.json_user_repository import (
    JsonAdminUserRepository,
    JsonNotificationRepository,
    JsonUserRepository,
)
from jomla.infrastructure.resilience import CircuitBreaker
from jomla.infrastructure.triggers import (
    ObservedOfferRepository,
    ObservedOrderRepository,
    TriggerDispatcher,
)

logger = logging.getLogger(__name__)

STORE_FILE = "jomla.json"


@dataclass
class AppContext:
    settings: Settings
    store: JsonDocumentStore
    tokens: JwtTokenService
    auth: LocalAuthGateway
    storage: LocalBlobStorage
    http_client: httpx.Client

    # Repositories
    products: ProductRepository
    offers: OfferRepository
    carts: CartRepository
    orders: OrderRepository
    users: UserRepository
    admins: AdminUserRepository
    notifications: NotificationRepository

    # Triggers
    offer_triggers: TriggerDispatcher[OfferChange]
    order_triggers: TriggerDispatcher[OrderChange]

    # Callables
    validate_cart: ValidateCartHandler
    create_order: CreateOrderHandler
    send_verification_code: SendVerificationCodeHandler
    verify_code: VerifyCodeHandler
    reset_password: ResetPasswordHandler
    create_admin_user: CreateAdminUserHandler

    # Operator commands
    save_product: SaveProductHandler
    set_product_status: SetProductStatusHandler
    save_offer: SaveOfferHandler
    publish_offer: PublishOfferHandler
    set_offer_status: SetOfferStatusHandler
    delete_offer: DeleteOfferHandler
    show_cart: ShowCartHandler
    add_offer_to_cart: AddOfferToCartHandler
    add_product_to_cart: AddProductToCartHandler
    update_cart_item: UpdateCartItemHandler
    remove_cart_item: RemoveCartItemHandler
    show_order: ShowOrderHandler
    update_order_status: UpdateOrderStatusHandler
    cleanup_verification_codes: CleanupVerificationCodesHandler
    bootstrap_admin: BootstrapSuperAdminHandler

    def close(self) -> None:
        self.http_client.close()


def build_context(settings: Settings) -> AppContext:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    store = JsonDocumentStore(settings.data_dir / STORE_FILE)
    tokens = JwtTokenService(
        settings.token_secret,
        issuer=settings.token_issuer,
        ttl_seconds=settings.token_ttl_seconds,
    )
    auth = LocalAuthGateway(store, tokens)
    storage = LocalBlobStorage(settings.blob_dir, settings.storage_base_url, tokens)
    http_client = httpx.Client(timeout=settings.http_timeout)
    retry = {
        "max_attempts": settings.retry_max_attempts,
        "initial_delay": settings.retry_initial_delay,
        "max_delay": settings.retry_max_delay,
    }

    sms = TwilioSmsGateway(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
        http_client,
        base_url=settings.twilio_base_url,
        breaker=_breaker("twilio", settings),
        **retry,
    )
    push = HttpPushGateway(
        settings.push_endpoint,
        settings.push_api_key,
        http_client,
        breaker=_breaker("push", settings),
        **retry,
    )

    offer_triggers: TriggerDispatcher[OfferChange] = TriggerDispatcher("offer", **retry)
    order_triggers: TriggerDispatcher[OrderChange] = TriggerDispatcher("order", **retry)

    products = JsonProductRepository(store)
    offers = ObservedOfferRepository(JsonOfferRepository(store), offer_triggers)
    carts = JsonCartRepository(store)
    orders = ObservedOrderRepository(JsonOrderRepository(store), order_triggers)
    users = JsonUserRepository(store)
    admins = JsonAdminUserRepository(store)
    notifications = JsonNotificationRepository(store)

    validator = CartValidator(offers, products)

    offer_triggers.subscribe(
        "invalidateCartsOnOfferChange",
        InvalidateCartsOnOfferChangeHandler(carts).handle,
    )
    order_triggers.subscribe(
        "generateInvoice",
        GenerateInvoiceHandler(orders, ReportlabInvoiceRenderer(), storage).handle,
    )
    if settings.push_endpoint:
        offer_triggers.subscribe(
            "sendOfferNotification",
            SendOfferNotificationHandler(push, notifications).handle,
        )
        order_triggers.subscribe(
            "sendOrderStatusNotification",
            SendOrderStatusNotificationHandler(users, push, notifications).handle,
        )
    else:
        logger.warning("Push endpoint not configured; notification triggers disabled")

    if not settings.sms_configured:
        logger.warning("Twilio credentials not configured; verification SMS will fail")

    return AppContext(
        settings=settings,
        store=store,
        tokens=tokens,
        auth=auth,
        storage=storage,
        http_client=http_client,
        products=products,
        offers=offers,
        carts=carts,
        orders=orders,
        users=users,
        admins=admins,
        notifications=notifications,
        offer_triggers=offer_triggers,
        order_triggers=order_triggers,
        validate_cart=ValidateCartHandler(validator),
        create_order=CreateOrderHandler(
            carts,
            orders,
            users,
            validator,
            OrderNumberGenerator(JsonCounterRepository(store)),
            pickup_location=settings.pickup_location,
        ),
        send_verification_code=SendVerificationCodeHandler(users, sms),
        verify_code=VerifyCodeHandler(users, auth),
        reset_password=ResetPasswordHandler(users, auth),
        create_admin_user=CreateAdminUserHandler(admins, auth),
        save_product=SaveProductHandler(products),
        set_product_status=SetProductStatusHandler(products),
        save_offer=SaveOfferHandler(offers, products),
        publish_offer=PublishOfferHandler(offers),
        set_offer_status=SetOfferStatusHandler(offers),
        delete_offer=DeleteOfferHandler(offers),
        show_cart=ShowCartHandler(carts),
        add_offer_to_cart=AddOfferToCartHandler(carts, offers),
        add_product_to_cart=AddProductToCartHandler(carts, products),
        update_cart_item=UpdateCartItemHandler(carts),
        remove_cart_item=RemoveCartItemHandler(carts),
        show_order=ShowOrderHandler(orders),
        update_order_status=UpdateOrderStatusHandler(orders),
        cleanup_verification_codes=CleanupVerificationCodesHandler(users),
        bootstrap_admin=BootstrapSuperAdminHandler(admins, auth),
    )


def _breaker(name: str, settings: Settings) -> CircuitBreaker:
    return CircuitBreaker(
        name,
        failure_threshold=settings.circuit_failure_threshold,
        reset_timeout=settings.circuit_reset_timeout,
    )
