"""FastAPI dependency providers for the webhook receiver.

Settings are rebuilt from the environment on every request so a rotated
secret is picked up without a restart; only the SSM lookup behind them is
cached.

Usage in routes:
    from api.dependencies import get_webhook_settings

    @router.post("/webhooks/stripe")
    async def handle(settings: WebhookSettings = Depends(get_webhook_settings)):
        ...

Testing:
    Override with app.dependency_overrides[get_webhook_settings].
"""

from fastapi import Depends

from shared.config import WebhookSettings
from shared.services.automation_forwarder import AutomationForwarder


def get_webhook_settings() -> WebhookSettings:
    """Get settings for the current invocation."""
    return WebhookSettings.from_env()


def get_automation_forwarder(
    settings: WebhookSettings = Depends(get_webhook_settings),
) -> AutomationForwarder:
    """Get a forwarder pointed at the configured automation webhook.

    Returns:
        AutomationForwarder using the configured URL and timeout.
    """
    return AutomationForwarder(
        settings.automation_webhook_url,
        timeout=settings.forward_timeout_seconds,
    )
