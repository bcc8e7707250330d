"""Error taxonomy rendering."""

import pytest

from sellerpay.common import errors


@pytest.mark.parametrize(
    "error_cls, status, code",
    [
        (errors.InvalidAmountError, 400, "INVALID_AMOUNT"),
        (errors.InvalidUserIdError, 400, "INVALID_USER_ID"),
        (errors.InvalidMetadataError, 400, "INVALID_METADATA"),
        (errors.UserNotFoundError, 404, "USER_NOT_FOUND"),
        (errors.PaymentGatewayError, 502, "PAYMENT_GATEWAY_ERROR"),
        (errors.ClerkApiError, 502, "CLERK_API_ERROR"),
        (errors.InvalidPaymentVerificationError, 400, "INVALID_PAYMENT_VERIFICATION"),
        (errors.InvalidSignatureError, 400, "INVALID_SIGNATURE"),
        (errors.VerificationFailedError, 400, "VERIFICATION_FAILED"),
        (errors.RouteNotFoundError, 404, "ROUTE_NOT_FOUND"),
        (errors.GatewayTimeoutError, 504, "GATEWAY_TIMEOUT"),
        (errors.UnauthenticatedError, 401, "UNAUTHENTICATED"),
        (errors.BrokerError, 500, "INTERNAL_ERROR"),
    ],
)
def test_taxonomy(error_cls, status, code):
    exc = error_cls()

    assert exc.status == status
    assert exc.envelope()["code"] == code
    assert set(exc.envelope()) == {"error", "code"}


def test_custom_message_does_not_leak_to_class():
    exc = errors.PaymentGatewayError("custom")

    assert exc.envelope() == {"error": "custom", "code": "PAYMENT_GATEWAY_ERROR"}
    assert errors.PaymentGatewayError().message == "Failed to create payment order"


def test_collaborator_error_keeps_detail_out_of_envelope():
    upstream = errors.CollaboratorError("razorpay", status_code=500, detail="stack trace here")

    assert upstream.status_code == 500
    assert "stack trace here" in str(upstream)
    assert not isinstance(upstream, errors.BrokerError)
