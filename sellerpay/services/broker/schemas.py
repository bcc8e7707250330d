"""API request/response schemas for broker endpoints.

Request models are built only after the validators have accepted the raw
body, so they describe already-valid shapes.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OrderRequest(BaseModel):
    """Body accepted by `POST /create-order`."""

    amount: float = Field(gt=0)


class OrderResponse(BaseModel):
    """Public view of a gateway order; internal gateway fields are dropped."""

    orderId: str
    amount: int | float
    currency: str


class SellerMetadata(BaseModel):
    """Seller profile fields stored as identity-provider public metadata."""

    model_config = ConfigDict(extra="allow")

    businessName: str = Field(min_length=1)
    phoneNumber: str = Field(min_length=1)
    address: str = Field(min_length=1)
    description: str = Field(min_length=1)


class SellerUpdateRequest(BaseModel):
    """Body accepted by `POST /update-seller`."""

    userId: str = Field(min_length=1)
    metadata: SellerMetadata


class PaymentVerification(BaseModel):
    """Checkout callback fields forwarded by the storefront."""

    razorpay_order_id: Any
    razorpay_payment_id: Any
    razorpay_signature: Any


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str


class ErrorEnvelope(BaseModel):
    """Uniform failure body."""

    error: str
    code: str
