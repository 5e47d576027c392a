"""Pytest configuration and fixtures for the payments webhook tests.

This module provides reusable fixtures for testing:
- A clean webhook environment (no secret, no SSM parameter) per test
- SSM mocking with moto
- Stripe-style signing of request bodies
- Sample Stripe events
- An httpx mock transport standing in for the automation webhook
"""

import hashlib
import hmac
import json
import os
import time
from collections.abc import Callable
from typing import Any, Generator

import boto3
import httpx
import pytest
from moto import mock_aws

# === Environment Setup ===

os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")


TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"
TEST_AUTOMATION_URL = "https://automation.test/webhook/stripe-cavar-fundo-sucesso"
TEST_CLIENT_REFERENCE_ID = "lead_42"


# === Environment Fixtures ===


@pytest.fixture(autouse=True)
def clean_webhook_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Remove webhook settings from the environment and reset the SSM cache.

    Each test starts with no secret configured; tests that need one set it
    explicitly.
    """
    from shared.services.ssm_service import get_ssm_service

    for name in (
        "STRIPE_WEBHOOK_SECRET",
        "STRIPE_WEBHOOK_SECRET_PARAMETER",
        "AUTOMATION_WEBHOOK_URL",
        "AUTOMATION_WEBHOOK_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)

    get_ssm_service.cache_clear()
    yield
    get_ssm_service.cache_clear()


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def ssm_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked SSM client."""
    with mock_aws():
        yield boto3.client("ssm", region_name="us-east-1")


# === Signing Helpers ===


def sign_payload(
    payload: str,
    secret: str = TEST_WEBHOOK_SECRET,
    timestamp: int | str | None = None,
) -> str:
    """Create a Stripe-Signature header for a payload.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    ts = str(int(time.time()) if timestamp is None else timestamp)
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{ts}.{payload}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={signature}"


@pytest.fixture
def signer() -> Callable[..., str]:
    """Expose sign_payload as a fixture."""
    return sign_payload


# === Sample Events ===


@pytest.fixture
def checkout_completed_event() -> dict[str, Any]:
    """Sample checkout.session.completed webhook event."""
    return {
        "id": "evt_1CheckoutCompleted",
        "object": "event",
        "type": "checkout.session.completed",
        "created": 1767225600,
        "livemode": False,
        "data": {
            "object": {
                "id": "cs_1",
                "object": "checkout.session",
                "client_reference_id": TEST_CLIENT_REFERENCE_ID,
                "customer": "cus_1",
                "customer_details": {"email": "a@b.com", "name": "Maria Silva"},
                "customer_email": None,
                "payment_intent": "pi_1",
                "amount_total": 2990,
                "currency": "brl",
                "payment_status": "paid",
                "status": "complete",
                "metadata": {"funnel_step": "cavar-mais-fundo"},
            }
        },
    }


@pytest.fixture
def unhandled_event() -> dict[str, Any]:
    """An event type the receiver acknowledges but does not forward."""
    return {
        "id": "evt_3PaymentIntentCreated",
        "type": "payment_intent.created",
        "created": 1767225600,
        "data": {"object": {"id": "pi_test", "amount": 2990}},
    }


# === Automation Endpoint ===


class AutomationEndpoint:
    """Records requests sent to the mocked automation webhook."""

    def __init__(self, status_code: int = 200, error: Exception | None = None) -> None:
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def automation_endpoint() -> AutomationEndpoint:
    """An automation webhook answering 200."""
    return AutomationEndpoint()


@pytest.fixture
def make_automation_endpoint() -> Callable[..., AutomationEndpoint]:
    """Factory for automation webhooks that fail or answer non-2xx."""
    return AutomationEndpoint


@pytest.fixture
def webhook_secret() -> str:
    """Signing secret shared by the signer and the settings under test."""
    return TEST_WEBHOOK_SECRET


@pytest.fixture
def automation_url() -> str:
    return TEST_AUTOMATION_URL
