"""Error taxonomy shared by every route.

Each failure kind is one `BrokerError` subclass with a fixed HTTP status,
symbolic code and client-safe message. Routes raise them; the terminal
handlers in the app turn them into `{error, code}` envelopes.
"""

from typing import Any


class BrokerError(Exception):
    """Base for all failures that reach the client as an error envelope."""

    status: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def envelope(self) -> dict[str, Any]:
        """Render the sanitized response body."""

        return {"error": self.message, "code": self.code}


class InvalidAmountError(BrokerError):
    status = 400
    code = "INVALID_AMOUNT"
    message = "Invalid amount"


class InvalidUserIdError(BrokerError):
    status = 400
    code = "INVALID_USER_ID"
    message = "Invalid user ID"


class InvalidMetadataError(BrokerError):
    status = 400
    code = "INVALID_METADATA"
    message = "Invalid seller metadata"


class UserNotFoundError(BrokerError):
    status = 404
    code = "USER_NOT_FOUND"
    message = "User not found"


class PaymentGatewayError(BrokerError):
    status = 502
    code = "PAYMENT_GATEWAY_ERROR"
    message = "Failed to create payment order"


class ClerkApiError(BrokerError):
    status = 502
    code = "CLERK_API_ERROR"
    message = "Failed to update seller information"


class InvalidPaymentVerificationError(BrokerError):
    status = 400
    code = "INVALID_PAYMENT_VERIFICATION"
    message = "Missing payment verification parameters"


class InvalidSignatureError(BrokerError):
    status = 400
    code = "INVALID_SIGNATURE"
    message = "Invalid payment signature"


class VerificationFailedError(BrokerError):
    # Signature checks are local; a failure here is a bad request, not an outage.
    status = 400
    code = "VERIFICATION_FAILED"
    message = "Payment verification failed"


class RouteNotFoundError(BrokerError):
    status = 404
    code = "ROUTE_NOT_FOUND"
    message = "Route not found"


class InvalidJsonError(BrokerError):
    status = 400
    code = "INVALID_JSON"
    message = "Request body is not valid JSON"


class UnauthenticatedError(BrokerError):
    status = 401
    code = "UNAUTHENTICATED"
    message = "Unauthenticated"


class GatewayTimeoutError(BrokerError):
    status = 504
    code = "GATEWAY_TIMEOUT"
    message = "Upstream service timed out"


class ClientDisconnectedError(BrokerError):
    status = 499
    code = "CLIENT_CLOSED_REQUEST"
    message = "Client closed request"


class CollaboratorError(Exception):
    """Raised by collaborator clients when the upstream call fails.

    `status_code` is the upstream HTTP status when one was received. The
    upstream body is kept in `detail` for server-side logs only.
    """

    def __init__(self, dependency: str, status_code: int | None = None, detail: str = "") -> None:
        self.dependency = dependency
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{dependency} call failed status={status_code} detail={detail}")


class CollaboratorTimeout(CollaboratorError):
    """Raised when an upstream call exceeds its transport timeout."""
