"""Pure shape checks for inbound request fields.

Validators take one untyped value pulled from a JSON body and return a bool.
They never raise.
"""

import math
from collections.abc import Mapping
from typing import Any

REQUIRED_METADATA_FIELDS = ("businessName", "phoneNumber", "address", "description")
PAYMENT_VERIFICATION_FIELDS = ("razorpay_order_id", "razorpay_payment_id", "razorpay_signature")


def _non_blank_string(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def _present(value: Any) -> bool:
    """JSON-value truthiness: only null, false, 0, NaN and "" count as missing.

    Empty arrays and objects are present.
    """

    if value is None or value is False:
        return False
    if isinstance(value, float):
        return value != 0 and not math.isnan(value)
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


def validate_amount(amount: Any) -> bool:
    """True for a finite number strictly greater than zero."""

    # JSON true/false decode to bool, which is an int subclass.
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    try:
        value = float(amount)
    except OverflowError:
        # Integer literals past float range parse as Infinity in JSON clients.
        return False
    if not math.isfinite(value):
        return False
    return value > 0


def validate_user_id(user_id: Any) -> bool:
    return _non_blank_string(user_id)


def validate_metadata(metadata: Any) -> bool:
    """True when every required seller field is a non-blank string.

    Extra keys are allowed. Lists and scalars fail the per-key lookup.
    """

    if not isinstance(metadata, Mapping):
        return False
    return all(_non_blank_string(metadata.get(field)) for field in REQUIRED_METADATA_FIELDS)


def validate_payment_verification(body: Any) -> bool:
    """Presence check only; values are passed through untyped."""

    if not isinstance(body, Mapping):
        return False
    return all(_present(body.get(field)) for field in PAYMENT_VERIFICATION_FIELDS)
