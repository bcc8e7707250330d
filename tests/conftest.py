"""Shared fixtures for broker tests."""

import pytest
from fastapi.testclient import TestClient

from fakes import AllowAllGate, FakeIdentity, FakePayments
from sellerpay.common.config import Settings
from sellerpay.services.broker.main import create_app


@pytest.fixture
def settings():
    return Settings(
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        clerk_secret_key="sk_test",
        upstream_timeout_seconds=2.0,
        disconnect_poll_seconds=0.01,
        auth_exempt_paths=["/metrics"],
    )


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def make_client(settings, payments, identity):
    """Build a TestClient around `create_app`, overriding pieces as needed."""

    def _make(**overrides):
        app = create_app(
            settings=overrides.get("settings", settings),
            payments=overrides.get("payments", payments),
            identity=overrides.get("identity", identity),
            auth_gate=overrides.get("auth_gate", AllowAllGate()),
        )
        return TestClient(app, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
