"""Broker operations behind each HTTP route.

Every operation validates the raw body first, makes at most one collaborator
call under a deadline, and raises a `BrokerError` subclass on failure.
"""

import math
from datetime import datetime, timezone
from time import time
from typing import Any
from uuid import uuid4

from starlette.requests import Request

from sellerpay.common.config import Settings, settings as default_settings
from sellerpay.common.deadline import guard_call
from sellerpay.common.errors import (
    BrokerError,
    ClerkApiError,
    CollaboratorError,
    InvalidAmountError,
    InvalidMetadataError,
    InvalidPaymentVerificationError,
    InvalidSignatureError,
    InvalidUserIdError,
    PaymentGatewayError,
    UserNotFoundError,
    VerificationFailedError,
)
from sellerpay.common.logging import logger
from sellerpay.common.validators import (
    validate_amount,
    validate_metadata,
    validate_payment_verification,
    validate_user_id,
)
from sellerpay.services.broker.collaborators import IdentityProvider, PaymentGateway
from sellerpay.services.broker.schemas import (
    HealthResponse,
    OrderRequest,
    OrderResponse,
    PaymentVerification,
    SellerUpdateRequest,
    SuccessResponse,
)


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision and a `Z` suffix."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_receipt() -> str:
    # Razorpay caps receipts at 40 characters.
    return f"receipt_{int(time() * 1000)}_{uuid4().hex[:8]}"


def round_amount(amount: float) -> int:
    """Round half up to the smallest currency unit."""

    return int(math.floor(amount + 0.5))


class BrokerService:
    """Composes validators, collaborators and the error taxonomy."""

    def __init__(
        self,
        payments: PaymentGateway,
        identity: IdentityProvider,
        settings: Settings = default_settings,
    ) -> None:
        self.payments = payments
        self.identity = identity
        self.settings = settings

    async def _guarded(self, call, dependency: str, request: Request | None):
        return await guard_call(
            call,
            dependency=dependency,
            timeout=self.settings.upstream_timeout_seconds,
            request=request,
            poll_interval=self.settings.disconnect_poll_seconds,
        )

    def health(self) -> HealthResponse:
        return HealthResponse(status="ok", timestamp=utc_timestamp())

    async def create_order(self, body: dict[str, Any], request: Request | None = None) -> OrderResponse:
        amount = body.get("amount")
        if not validate_amount(amount):
            raise InvalidAmountError()
        order_req = OrderRequest(amount=amount)

        payload = {
            "amount": round_amount(order_req.amount),
            "currency": self.settings.currency,
            "receipt": new_receipt(),
            "payment_capture": 1,
        }
        try:
            order = await self._guarded(self.payments.create_order(payload), "razorpay", request)
        except BrokerError:
            raise
        except Exception as exc:
            logger.error("Razorpay order creation error: %s", exc)
            raise PaymentGatewayError() from exc

        return OrderResponse(orderId=order["id"], amount=order["amount"], currency=order["currency"])

    async def update_seller(self, body: dict[str, Any], request: Request | None = None) -> SuccessResponse:
        user_id = body.get("userId")
        if not validate_user_id(user_id):
            raise InvalidUserIdError()
        metadata = body.get("metadata")
        if not validate_metadata(metadata):
            raise InvalidMetadataError()
        update = SellerUpdateRequest(userId=user_id, metadata=metadata)

        try:
            user = await self._guarded(self.identity.get_user(update.userId), "clerk", request)
            if not user:
                raise UserNotFoundError()

            public_metadata = {**update.metadata.model_dump(), "updatedAt": utc_timestamp()}
            await self._guarded(
                self.identity.update_user_metadata(update.userId, public_metadata),
                "clerk",
                request,
            )
        except BrokerError:
            raise
        except Exception as exc:
            logger.error("Clerk metadata update error: %s", exc)
            if isinstance(exc, CollaboratorError) and exc.status_code == 404:
                raise UserNotFoundError() from exc
            raise ClerkApiError() from exc

        logger.info("seller metadata updated user_id=%s", update.userId)
        return SuccessResponse(success=True, message="Seller metadata updated successfully")

    async def verify_payment(self, body: dict[str, Any]) -> SuccessResponse:
        if not validate_payment_verification(body):
            raise InvalidPaymentVerificationError()
        verification = PaymentVerification.model_validate(body)

        try:
            is_valid = self.payments.verify_payment_signature(
                verification.razorpay_order_id,
                verification.razorpay_payment_id,
                verification.razorpay_signature,
            )
        except Exception as exc:
            logger.error("Payment verification error: %s", exc)
            raise VerificationFailedError() from exc

        if not is_valid:
            logger.warning("invalid payment signature order_id=%s", verification.razorpay_order_id)
            raise InvalidSignatureError()
        return SuccessResponse(success=True, message="Payment verified successfully")
