"""Webhook handler for processing Stripe events.

Provides business logic for handling webhook events separate from
HTTP routing concerns. This enables:
- Unit testing without HTTP overhead
- Reuse across different transport mechanisms (FastAPI route, Lambda)

The handler verifies, parses and dispatches. It never forwards anything
itself: it returns the notification to send and leaves delivery to the
caller, after the response to Stripe has been decided.
"""

from pydantic import ValidationError

from shared.models.errors import ErrorCode, WebhookError
from shared.models.stripe_webhook import (
    CHECKOUT_SESSION_COMPLETED,
    AutomationNotification,
    CheckoutSession,
    StripeEvent,
)
from shared.services.signature import verify_stripe_signature
from shared.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


def decode_body(payload: bytes) -> str:
    """Decode a raw request body the way it is signed and parsed.

    Invalid UTF-8 sequences are replaced rather than rejected; a body that
    needed replacing will simply fail signature verification.
    """
    return payload.decode("utf-8", errors="replace")


class WebhookHandler:
    """Handler for verified Stripe webhook deliveries.

    Usage:
        handler = WebhookHandler(webhook_secret="whsec_...")
        notification = handler.process(raw_body, signature_header)
        if notification is not None:
            await forwarder.forward(notification)
    """

    HANDLED_EVENT_TYPES = frozenset({CHECKOUT_SESSION_COMPLETED})

    def __init__(self, webhook_secret: str) -> None:
        """Initialize webhook handler.

        Args:
            webhook_secret: Stripe endpoint signing secret

        Raises:
            WebhookError: CONFIGURATION_ERROR if the secret is empty.
        """
        if not webhook_secret:
            raise WebhookError(
                ErrorCode.CONFIGURATION_ERROR,
                details={"setting": "webhook_secret"},
            )
        self._secret = webhook_secret

    def verify(self, raw_body: str, signature_header: str) -> None:
        """Verify a delivery's signature.

        Args:
            raw_body: Request body exactly as received
            signature_header: Stripe-Signature header value

        Raises:
            WebhookError: INVALID_SIGNATURE if verification fails.
        """
        if not verify_stripe_signature(raw_body, signature_header, self._secret):
            raise WebhookError(ErrorCode.INVALID_SIGNATURE)

    def parse_event(self, raw_body: str) -> StripeEvent:
        """Parse a verified body into the event envelope.

        Args:
            raw_body: Verified request body

        Returns:
            Parsed StripeEvent.

        Raises:
            WebhookError: INVALID_PAYLOAD if the body is not a JSON object.
        """
        try:
            return StripeEvent.model_validate_json(raw_body)
        except ValidationError as e:
            raise WebhookError(
                ErrorCode.INVALID_PAYLOAD,
                details={"errors": str(e.error_count())},
            ) from e

    def build_notification(self, event: StripeEvent) -> AutomationNotification | None:
        """Dispatch on event type.

        Args:
            event: Parsed Stripe event

        Returns:
            The notification to forward, or None for event types we ignore.

        Raises:
            WebhookError: INVALID_PAYLOAD if a handled event's object is not
                a JSON object or has fields of the wrong type.
        """
        if event.event_type not in self.HANDLED_EVENT_TYPES:
            log_webhook_event(logger, event.type, event.id, result="ignored")
            return None

        try:
            session = CheckoutSession.model_validate(event.data_object)
        except ValidationError as e:
            raise WebhookError(
                ErrorCode.INVALID_PAYLOAD,
                details={"errors": str(e.error_count())},
            ) from e

        notification = AutomationNotification.from_checkout_session(
            session, event_type=CHECKOUT_SESSION_COMPLETED
        )
        logger.info(
            "Processing checkout.session.completed: session=%s reference=%s "
            "amount=%s %s status=%s",
            notification.checkout_session_id,
            notification.client_reference_id,
            notification.amount_total,
            notification.currency,
            notification.payment_status,
        )
        return notification

    def process(self, raw_body: str, signature_header: str) -> AutomationNotification | None:
        """Verify, parse and dispatch one delivery.

        Args:
            raw_body: Request body exactly as received
            signature_header: Stripe-Signature header value

        Returns:
            The notification to forward, or None if nothing is to be sent.

        Raises:
            WebhookError: INVALID_SIGNATURE or INVALID_PAYLOAD.
        """
        self.verify(raw_body, signature_header)
        event = self.parse_event(raw_body)
        log_webhook_event(logger, event.type, event.id, result="received")
        return self.build_notification(event)
