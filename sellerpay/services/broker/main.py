"""Public HTTP surface brokering storefront calls to Razorpay and Clerk.

Every request is logged, passes the identity-provider gate (unless its path is
exempt), and then reaches a route. Failures raised anywhere below the
middleware end up in the terminal handlers, which send `{error, code}`.
"""

import json
import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Any
from uuid import uuid4

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sellerpay.common.config import Settings, settings as default_settings
from sellerpay.common.errors import BrokerError, InvalidJsonError, RouteNotFoundError
from sellerpay.common.logging import configure_logging, http_method_ctx, http_path_ctx, logger, trace_id_ctx
from sellerpay.common.metrics import (
    error_responses_total,
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from sellerpay.common.startup import log_startup_config
from sellerpay.common.tracing import configure_tracing
from sellerpay.services.broker.auth import AuthGate, ClerkAuthGate
from sellerpay.services.broker.collaborators import ClerkClient, IdentityProvider, PaymentGateway, RazorpayClient
from sellerpay.services.broker.schemas import ErrorEnvelope, HealthResponse, OrderResponse, SuccessResponse
from sellerpay.services.broker.service import BrokerService

router = APIRouter()


def failure_responses(*statuses: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI entries documenting the `{error, code}` failure body."""

    return {status: {"model": ErrorEnvelope} for status in (401, *statuses)}


def get_broker(request: Request) -> BrokerService:
    return request.app.state.broker


async def read_json_body(request: Request) -> dict[str, Any]:
    """Decode the body leniently: empty or non-object JSON reads as `{}`."""

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise InvalidJsonError() from exc
    return data if isinstance(data, dict) else {}


def error_response(request: Request, exc: BrokerError) -> JSONResponse:
    """Log the failure with its upstream cause and send the sanitized envelope."""

    settings: Settings = request.app.state.settings
    cause = exc.__cause__
    logger.log(
        logging.ERROR if exc.status >= 500 else logging.WARNING,
        "request failed code=%s status=%s method=%s path=%s",
        exc.code,
        exc.status,
        request.method,
        request.url.path,
        exc_info=(type(cause), cause, cause.__traceback__) if cause is not None else None,
    )
    error_responses_total.labels(service=settings.service_name, code=exc.code).inc()
    return JSONResponse(status_code=exc.status, content=exc.envelope())


@router.get("/health", response_model=HealthResponse, responses=failure_responses())
def health(broker: BrokerService = Depends(get_broker)):
    """Liveness probe; never touches a collaborator."""

    return broker.health()


@router.post("/create-order", response_model=OrderResponse, responses=failure_responses(400, 502, 504))
async def create_order(
    request: Request,
    body: dict[str, Any] = Depends(read_json_body),
    broker: BrokerService = Depends(get_broker),
):
    """Create a Razorpay order for `amount` in the smallest currency unit."""

    return await broker.create_order(body, request)


@router.post("/update-seller", response_model=SuccessResponse, responses=failure_responses(400, 404, 502, 504))
async def update_seller(
    request: Request,
    body: dict[str, Any] = Depends(read_json_body),
    broker: BrokerService = Depends(get_broker),
):
    """Store seller profile fields as Clerk public metadata."""

    return await broker.update_seller(body, request)


@router.post("/verify-payment", response_model=SuccessResponse, responses=failure_responses(400))
async def verify_payment(
    body: dict[str, Any] = Depends(read_json_body),
    broker: BrokerService = Depends(get_broker),
):
    """Check the checkout callback signature."""

    return await broker.verify_payment(body)


@router.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


def create_app(
    settings: Settings | None = None,
    payments: PaymentGateway | None = None,
    identity: IdentityProvider | None = None,
    auth_gate: AuthGate | None = None,
) -> FastAPI:
    """Build the broker app.

    Collaborators default to the real Razorpay/Clerk clients built from
    settings; tests pass fakes instead. Clients built here are closed on
    shutdown.
    """

    settings = settings or default_settings
    configure_logging(settings.log_level)
    log_startup_config(
        settings,
        [
            "razorpay_key_id",
            "razorpay_key_secret",
            "clerk_secret_key",
            "clerk_jwt_key",
            "currency",
            "upstream_timeout_seconds",
            "auth_exempt_paths",
            "tracing_enabled",
        ],
    )

    owned = []
    if payments is None:
        payments = RazorpayClient.from_settings(settings)
        owned.append(payments)
    if identity is None:
        identity = ClerkClient.from_settings(settings)
        owned.append(identity)
    if auth_gate is None:
        auth_gate = ClerkAuthGate.from_settings(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        """Close collaborator HTTP clients with application lifecycle."""

        yield
        for client in owned:
            await client.aclose()

    app = FastAPI(title="SellerPay Broker", lifespan=lifespan)
    app.state.settings = settings
    app.state.auth_gate = auth_gate
    app.state.broker = BrokerService(payments, identity, settings)
    app.include_router(router)

    @app.middleware("http")
    async def auth_gate_middleware(request: Request, call_next):
        """Reject unauthenticated requests before any route runs."""

        if request.method == "OPTIONS" or request.url.path in settings.auth_exempt_paths:
            return await call_next(request)
        try:
            request.state.auth = await request.app.state.auth_gate.authenticate(request)
        except BrokerError as exc:
            return error_response(request, exc)
        return await call_next(request)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind correlation id, log entry, and record count and latency."""

        start = perf_counter()
        trace_id = request.headers.get("x-correlation-id") or str(uuid4())
        trace_id_ctx.set(trace_id)
        http_method_ctx.set(request.method)
        http_path_ctx.set(request.url.path)
        logger.info("Incoming request: %s %s", request.method, request.url.path)

        route = "<unmatched>"
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            response.headers["X-Correlation-Id"] = trace_id
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=request.method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=request.method,
                status_code=str(status_code),
            ).inc()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    @app.exception_handler(BrokerError)
    async def broker_error_handler(request: Request, exc: BrokerError):
        return error_response(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Routing misses (404/405) become ROUTE_NOT_FOUND."""

        if exc.status_code in (404, 405):
            logger.error("Unhandled route: %s %s", request.method, request.url.path)
            return error_response(request, RouteNotFoundError())
        failure = BrokerError(str(exc.detail))
        failure.status = exc.status_code
        return error_response(request, failure)

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        """Catch-all: full traceback in logs, generic envelope to the client."""

        logger.error("Server error: %s", exc, exc_info=True)
        failure = BrokerError()
        error_responses_total.labels(service=settings.service_name, code=failure.code).inc()
        return JSONResponse(status_code=failure.status, content=failure.envelope())

    if settings.tracing_enabled:
        configure_tracing(app, settings)
    return app


def main() -> None:
    """Run the broker under uvicorn."""

    uvicorn.run(
        "sellerpay.services.broker.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
