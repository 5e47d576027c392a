"""Unit tests for Stripe webhook handling.

Tests verify event parsing and dispatch in WebhookHandler, and the
notification projection, without any HTTP layer.

Test categories:
- Handler construction and signature checks
- Envelope parsing
- checkout.session.completed projection
- Unhandled event types
"""

import datetime as dt
import json
from typing import Any

import pytest

from shared.models.errors import ErrorCode, WebhookError
from shared.models.stripe_webhook import (
    AutomationNotification,
    CheckoutSession,
    StripeEvent,
    utc_timestamp,
)
from shared.services.webhook_handler import WebhookHandler, decode_body


# === Test Fixtures ===


@pytest.fixture
def handler(webhook_secret: str) -> WebhookHandler:
    return WebhookHandler(webhook_secret=webhook_secret)


# === Construction and verification ===


class TestWebhookHandlerSetup:
    """Handler requires a secret and rejects bad signatures."""

    @pytest.mark.parametrize("secret", ["", None])
    def test_missing_secret_is_configuration_error(self, secret: Any):
        with pytest.raises(WebhookError) as exc_info:
            WebhookHandler(webhook_secret=secret)

        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR
        assert exc_info.value.message == "Internal server error"

    def test_invalid_signature_raises(self, handler: WebhookHandler, signer):
        body = '{"type": "checkout.session.completed"}'
        header = signer(body, secret="whsec_someone_else")

        with pytest.raises(WebhookError) as exc_info:
            handler.process(body, header)

        assert exc_info.value.code == ErrorCode.INVALID_SIGNATURE

    def test_signature_checked_before_parsing(self, handler: WebhookHandler):
        """An unsigned, unparseable body is a signature error, not a parse error."""
        with pytest.raises(WebhookError) as exc_info:
            handler.process("{not json", "t=1,v1=deadbeef")

        assert exc_info.value.code == ErrorCode.INVALID_SIGNATURE


# === Envelope parsing ===


class TestParseEvent:
    """Tests for WebhookHandler.parse_event()."""

    def test_parses_envelope(self, handler: WebhookHandler, checkout_completed_event):
        event = handler.parse_event(json.dumps(checkout_completed_event))

        assert event.id == "evt_1CheckoutCompleted"
        assert event.type == "checkout.session.completed"
        assert event.data_object["client_reference_id"] == "lead_42"

    @pytest.mark.parametrize("body", ["{not json", "", "[]", '"text"', "null"])
    def test_malformed_body_is_invalid_payload(self, handler: WebhookHandler, body: str):
        with pytest.raises(WebhookError) as exc_info:
            handler.parse_event(body)

        assert exc_info.value.code == ErrorCode.INVALID_PAYLOAD
        assert exc_info.value.__cause__ is not None

    def test_missing_data_gives_empty_object(self, handler: WebhookHandler):
        event = handler.parse_event('{"type": "checkout.session.completed"}')
        assert event.data_object == {}

    def test_envelope_fields_kept_as_received(self, handler: WebhookHandler):
        event = handler.parse_event(
            '{"id": 7, "type": 123, "created": "soon", "livemode": "yes", "data": "x"}'
        )

        assert event.type == 123
        assert event.event_type is None
        assert event.created == "soon"
        assert event.data_object is None

    def test_decode_body_replaces_invalid_utf8(self):
        assert decode_body(b'{"a": "\xff"}') == '{"a": "�"}'
        assert decode_body("João".encode()) == "João"


# === checkout.session.completed ===


class TestCheckoutCompleted:
    """Tests for the notification built from a completed checkout."""

    def test_process_returns_notification(
        self, handler: WebhookHandler, signer, checkout_completed_event
    ):
        body = json.dumps(checkout_completed_event, indent=2)

        notification = handler.process(body, signer(body))

        assert isinstance(notification, AutomationNotification)
        assert notification.event_type == "checkout.session.completed"
        assert notification.checkout_session_id == "cs_1"
        assert notification.client_reference_id == "lead_42"
        assert notification.customer_email == "a@b.com"
        assert notification.customer_id == "cus_1"
        assert notification.payment_intent_id == "pi_1"
        assert notification.amount_total == 2990
        assert notification.currency == "brl"
        assert notification.payment_status == "paid"
        assert notification.metadata == {"funnel_step": "cavar-mais-fundo"}

    def test_email_falls_back_to_customer_email(
        self, handler: WebhookHandler, checkout_completed_event
    ):
        session = checkout_completed_event["data"]["object"]
        session["customer_details"] = None
        session["customer_email"] = "fallback@b.com"

        notification = handler.build_notification(
            StripeEvent.model_validate(checkout_completed_event)
        )

        assert notification is not None
        assert notification.customer_email == "fallback@b.com"

    def test_missing_fields_forwarded_as_null(self, handler: WebhookHandler):
        event = StripeEvent.model_validate(
            {"type": "checkout.session.completed", "data": {"object": {}}}
        )

        notification = handler.build_notification(event)

        assert notification is not None
        payload = notification.model_dump(mode="json")
        assert payload["checkout_session_id"] is None
        assert payload["client_reference_id"] is None
        assert payload["customer_email"] is None
        assert payload["metadata"] == {}

    def test_wrongly_typed_field_is_invalid_payload(self, handler: WebhookHandler):
        event = StripeEvent.model_validate(
            {
                "type": "checkout.session.completed",
                "data": {"object": {"amount_total": {"value": 2990}}},
            }
        )

        with pytest.raises(WebhookError) as exc_info:
            handler.build_notification(event)

        assert exc_info.value.code == ErrorCode.INVALID_PAYLOAD

    @pytest.mark.parametrize("data", ["x", {"object": "cs_1"}, {"object": [1]}])
    def test_non_object_session_is_invalid_payload(self, handler: WebhookHandler, data: Any):
        event = StripeEvent.model_validate({"type": "checkout.session.completed", "data": data})

        with pytest.raises(WebhookError) as exc_info:
            handler.build_notification(event)

        assert exc_info.value.code == ErrorCode.INVALID_PAYLOAD


# === Unhandled events ===


class TestUnhandledEvents:
    """Other event types are acknowledged but produce nothing to forward."""

    @pytest.mark.parametrize(
        "event_type",
        [
            "payment_intent.created",
            "checkout.session.expired",
            "charge.refunded",
            None,
            123,
            ["checkout.session.completed"],
        ],
    )
    def test_returns_none(self, handler: WebhookHandler, event_type: Any):
        event = StripeEvent.model_validate({"type": event_type, "data": {"object": {}}})
        assert handler.build_notification(event) is None

    def test_process_unhandled_event(self, handler: WebhookHandler, signer, unhandled_event):
        body = json.dumps(unhandled_event)
        assert handler.process(body, signer(body)) is None


# === Models ===


class TestNotificationModel:
    """Tests for AutomationNotification and helpers."""

    def test_wire_shape(self):
        session = CheckoutSession(id="cs_1", client_reference_id="lead_42")
        now = dt.datetime(2026, 1, 1, 12, 0, 0, tzinfo=dt.UTC)

        payload = AutomationNotification.from_checkout_session(session, now=now).model_dump(
            mode="json"
        )

        assert set(payload) == {
            "event_type",
            "checkout_session_id",
            "client_reference_id",
            "customer_email",
            "customer_id",
            "payment_intent_id",
            "amount_total",
            "currency",
            "payment_status",
            "metadata",
            "timestamp",
        }
        assert payload["timestamp"] == "2026-01-01T12:00:00.000Z"

    def test_utc_timestamp_converts_offsets(self):
        brt = dt.timezone(dt.timedelta(hours=-3))
        moment = dt.datetime(2026, 1, 1, 9, 0, 0, 123456, tzinfo=brt)
        assert utc_timestamp(moment) == "2026-01-01T12:00:00.123Z"

    def test_utc_timestamp_defaults_to_now(self):
        stamp = utc_timestamp()
        assert stamp.endswith("Z")
        parsed = dt.datetime.fromisoformat(stamp.replace("Z", "+00:00"))
        assert abs((dt.datetime.now(dt.UTC) - parsed).total_seconds()) < 5

    def test_customer_details_email_preferred(self):
        session = CheckoutSession.model_validate(
            {"customer_details": {"email": "a@b.com"}, "customer_email": "other@b.com"}
        )
        assert session.email == "a@b.com"
