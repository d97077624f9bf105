"""HTTP surface: the callable endpoints and signed file downloads.

Callables are ``POST /callable/<name>`` with a ``{"data": {...}}`` body.
Success returns ``{"result": {...}}``; a DomainException becomes
``{"error": {"status": <code>, "message": <text>}}`` with a matching HTTP
status.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from jomla.application.dto import Caller
from jomla.domain.exceptions import DomainException, ErrorCode, UnauthenticatedError
from jomla.infrastructure.api.schemas import (
    CreateAdminData,
    CreateAdminResponse,
    CreateOrderData,
    CreateOrderResponse,
    Envelope,
    ResetPasswordData,
    SendCodeData,
    SendCodeResponse,
    SuccessResponse,
    ValidateCartData,
    ValidateCartResponse,
    VerifyCodeData,
    VerifyCodeResponse,
)
from jomla.infrastructure.bootstrap import AppContext, build_context
from jomla.infrastructure.config import get_settings
from jomla.infrastructure.logging_config import configure_logging

logger = logging.getLogger(__name__)

HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.FAILED_PRECONDITION: 400,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.INTERNAL: 500,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.DEADLINE_EXCEEDED: 504,
}


def _error(code: ErrorCode, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_STATUS.get(code, 500),
        content={"error": {"status": code.value, "message": message}},
    )


def _result(payload) -> dict:
    return {"result": payload.model_dump(by_alias=True, exclude_none=True, mode="json")}


# --- Dependencies ---------------------------------------------------------------


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_caller(
    authorization: Optional[str] = Header(None),
    context: AppContext = Depends(get_context),
) -> Optional[Caller]:
    """Resolve the bearer token, if any, to the calling identity."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthenticatedError("Malformed Authorization header")
    return context.tokens.verify_caller(token.strip())


# --- App factory ----------------------------------------------------------------


def create_app(context: AppContext | None = None) -> FastAPI:
    owns_context = context is None
    if context is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        context = build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Jomla API starting up (data dir %s)", context.settings.data_dir)
        yield
        logger.info("Jomla API shutting down")
        if owns_context:
            context.close()

    app = FastAPI(
        title="Jomla",
        description="Grocery ordering backend: carts, bundled offers and orders",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.context = context

    @app.exception_handler(DomainException)
    async def domain_error_handler(request: Request, exc: DomainException) -> JSONResponse:
        return _error(exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = f"Invalid request: {field} {first.get('msg', '')}".strip()
        return _error(ErrorCode.INVALID_ARGUMENT, message)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # --- Callables ---

    @app.post("/callable/validateCart")
    def validate_cart(
        body: Envelope[ValidateCartData],
        caller: Optional[Caller] = Depends(get_caller),
        context: AppContext = Depends(get_context),
    ):
        dto = context.validate_cart.handle(caller, body.data.offer_lines(), body.data.product_lines())
        return _result(ValidateCartResponse.from_dto(dto))

    @app.post("/callable/createOrder")
    def create_order(
        body: Envelope[CreateOrderData],
        caller: Optional[Caller] = Depends(get_caller),
        context: AppContext = Depends(get_context),
    ):
        dto = context.create_order.handle(caller, body.data.to_request())
        return _result(CreateOrderResponse.from_dto(dto))

    @app.post("/callable/sendVerificationCode")
    def send_verification_code(
        body: Envelope[SendCodeData],
        context: AppContext = Depends(get_context),
    ):
        dto = context.send_verification_code.handle(body.data.phone_number, body.data.type)
        return _result(SendCodeResponse.from_dto(dto))

    @app.post("/callable/verifyCode")
    def verify_code(
        body: Envelope[VerifyCodeData],
        context: AppContext = Depends(get_context),
    ):
        data = body.data
        dto = context.verify_code.handle(data.phone_number, data.code, data.type)
        return _result(VerifyCodeResponse.from_dto(dto))

    @app.post("/callable/resetPassword")
    def reset_password(
        body: Envelope[ResetPasswordData],
        context: AppContext = Depends(get_context),
    ):
        data = body.data
        ok = context.reset_password.handle(data.phone_number, data.new_password, data.verification_token)
        return _result(SuccessResponse(success=ok))

    @app.post("/callable/createAdminUser")
    def create_admin_user(
        body: Envelope[CreateAdminData],
        caller: Optional[Caller] = Depends(get_caller),
        context: AppContext = Depends(get_context),
    ):
        data = body.data
        dto = context.create_admin_user.handle(
            caller, data.email, data.password, data.first_name, data.last_name, data.role
        )
        return _result(CreateAdminResponse.from_dto(dto))

    # --- Files ---

    @app.get("/files/{path:path}")
    def download(
        path: str,
        token: str = Query(...),
        context: AppContext = Depends(get_context),
    ):
        blob = context.storage.open(path, token)
        return FileResponse(blob.path, media_type=blob.content_type, filename=blob.path.name)
