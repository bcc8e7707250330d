"""External collaborators: payment gateway and identity provider.

Routes only see the two protocols below. The concrete clients talk to the
Razorpay and Clerk REST APIs over httpx and translate transport failures into
`CollaboratorError` / `CollaboratorTimeout` so the service never handles raw
httpx exceptions or upstream bodies.
"""

import hashlib
import hmac
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from sellerpay.common.config import Settings
from sellerpay.common.errors import CollaboratorError, CollaboratorTimeout
from sellerpay.common.logging import logger


class PaymentGateway(Protocol):
    async def create_order(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    def verify_payment_signature(self, order_id: Any, payment_id: Any, signature: Any) -> bool: ...


class IdentityProvider(Protocol):
    async def get_user(self, user_id: str) -> dict[str, Any] | None: ...

    async def update_user_metadata(self, user_id: str, public_metadata: dict[str, Any]) -> dict[str, Any]: ...


async def _send(client: httpx.AsyncClient, dependency: str, method: str, url: str, **kwargs) -> httpx.Response:
    """Issue one request, mapping transport errors onto collaborator errors."""

    try:
        return await client.request(method, url, **kwargs)
    except httpx.TimeoutException as exc:
        raise CollaboratorTimeout(dependency, detail=str(exc)) from exc
    except httpx.RequestError as exc:
        raise CollaboratorError(dependency, detail=str(exc)) from exc


def _raise_for_status(dependency: str, response: httpx.Response) -> None:
    if response.is_error:
        raise CollaboratorError(dependency, status_code=response.status_code, detail=response.text)


class RazorpayClient:
    """Orders API client plus local payment signature check."""

    dependency = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_secret = key_secret
        self.client = httpx.AsyncClient(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RazorpayClient":
        return cls(
            settings.razorpay_key_id,
            settings.razorpay_key_secret,
            base_url=settings.razorpay_base_url,
            timeout=settings.upstream_timeout_seconds,
        )

    async def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await _send(self.client, self.dependency, "POST", "/v1/orders", json=payload)
        _raise_for_status(self.dependency, response)
        order = response.json()
        logger.info("razorpay order created order_id=%s", order.get("id"))
        return order

    def verify_payment_signature(self, order_id: Any, payment_id: Any, signature: Any) -> bool:
        """HMAC-SHA256 of `order_id|payment_id` keyed by the API secret."""

        if not self.key_secret:
            raise ValueError("razorpay key secret is not configured")
        if not isinstance(signature, str):
            return False
        expected = hmac.new(
            self.key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    async def aclose(self) -> None:
        await self.client.aclose()


class ClerkClient:
    """Backend API client for user lookup and metadata updates."""

    dependency = "clerk"

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.clerk.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {secret_key}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClerkClient":
        return cls(
            settings.clerk_secret_key,
            base_url=settings.clerk_api_url,
            timeout=settings.upstream_timeout_seconds,
        )

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        """Return the user record, or None when Clerk has no such user."""

        response = await _send(self.client, self.dependency, "GET", f"/v1/users/{quote(user_id, safe='')}")
        if response.status_code == 404:
            return None
        _raise_for_status(self.dependency, response)
        return response.json()

    async def update_user_metadata(self, user_id: str, public_metadata: dict[str, Any]) -> dict[str, Any]:
        # Clerk deep-merges public_metadata into the stored value.
        response = await _send(
            self.client,
            self.dependency,
            "PATCH",
            f"/v1/users/{quote(user_id, safe='')}/metadata",
            json={"public_metadata": public_metadata},
        )
        _raise_for_status(self.dependency, response)
        return response.json()

    async def aclose(self) -> None:
        await self.client.aclose()
