"""Runtime settings for the Stripe webhook receiver.

Settings are passed into the request handler explicitly (see
api.dependencies.get_webhook_settings) instead of being read from the
environment inside request logic, so tests can build them directly.

Environment variables:
    STRIPE_WEBHOOK_SECRET: Endpoint signing secret (whsec_...)
    STRIPE_WEBHOOK_SECRET_PARAMETER: SSM SecureString path used when
        STRIPE_WEBHOOK_SECRET is unset
    AUTOMATION_WEBHOOK_URL: Where completed checkouts are forwarded
    AUTOMATION_WEBHOOK_TIMEOUT: Forward timeout in seconds
"""

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from shared.services.ssm_service import SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

DEFAULT_AUTOMATION_WEBHOOK_URL = (
    "https://drprocesso.app.n8n.cloud/webhook/stripe-cavar-fundo-sucesso"
)
DEFAULT_FORWARD_TIMEOUT_SECONDS = 10.0


class WebhookSettings(BaseModel):
    """Configuration for one webhook invocation."""

    model_config = ConfigDict(frozen=True)

    webhook_secret: str | None = Field(
        default=None,
        description="Stripe endpoint signing secret; None means not configured",
        repr=False,
    )
    automation_webhook_url: str = DEFAULT_AUTOMATION_WEBHOOK_URL
    forward_timeout_seconds: float = Field(default=DEFAULT_FORWARD_TIMEOUT_SECONDS, gt=0)

    @property
    def has_secret(self) -> bool:
        return bool(self.webhook_secret)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WebhookSettings":
        """Build settings from environment variables.

        A failed SSM lookup leaves the secret unset; the handler then answers
        500, the same as a deployment with no secret at all.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            WebhookSettings for the current invocation.
        """
        env = os.environ if environ is None else environ

        secret = env.get("STRIPE_WEBHOOK_SECRET") or None
        parameter = env.get("STRIPE_WEBHOOK_SECRET_PARAMETER")
        if secret is None and parameter:
            try:
                secret = get_ssm_service().get_parameter(parameter) or None
            except SSMServiceError as e:
                logger.error("Could not load webhook secret from SSM: %s", e)

        timeout_raw = env.get("AUTOMATION_WEBHOOK_TIMEOUT")
        timeout = DEFAULT_FORWARD_TIMEOUT_SECONDS
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                timeout = 0.0
            if not timeout > 0:
                logger.warning(
                    "Ignoring invalid AUTOMATION_WEBHOOK_TIMEOUT=%r", timeout_raw
                )
                timeout = DEFAULT_FORWARD_TIMEOUT_SECONDS

        return cls(
            webhook_secret=secret,
            automation_webhook_url=env.get(
                "AUTOMATION_WEBHOOK_URL", DEFAULT_AUTOMATION_WEBHOOK_URL
            ),
            forward_timeout_seconds=timeout,
        )
