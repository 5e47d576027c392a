"""Best-effort delivery of payment notifications to the automation webhook.

The automation workflow (n8n) picks up completed checkouts from here and
unlocks the lead's paid results. Delivery is a single POST: no retry, and no
failure ever propagates to the caller. Stripe has already been acknowledged
by the time a forward runs, so its outcome is only visible in the logs.
"""

import httpx

from shared.models.stripe_webhook import AutomationNotification
from shared.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class AutomationForwarder:
    """Posts AutomationNotification payloads to a fixed webhook URL.

    Usage:
        forwarder = AutomationForwarder("https://example.app.n8n.cloud/webhook/x")
        delivered = await forwarder.forward(notification)
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the forwarder.

        Args:
            url: Automation webhook URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    async def forward(self, notification: AutomationNotification) -> bool:
        """Deliver a notification once.

        Args:
            notification: Payload to send

        Returns:
            True if the endpoint answered 2xx, False on any other outcome.
        """
        payload = notification.model_dump(mode="json")
        session_id = notification.checkout_session_id or "unknown"

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except Exception as e:
            log_webhook_event(
                logger,
                notification.event_type,
                session_id,
                client_reference_id=notification.client_reference_id,
                result="forward_failed",
                error=f"{type(e).__name__}: {e}",
            )
            return False

        if not response.is_success:
            log_webhook_event(
                logger,
                notification.event_type,
                session_id,
                client_reference_id=notification.client_reference_id,
                result="forward_failed",
                error=f"{response.status_code} {response.reason_phrase}",
            )
            return False

        log_webhook_event(
            logger,
            notification.event_type,
            session_id,
            client_reference_id=notification.client_reference_id,
            result="forwarded",
        )
        return True
