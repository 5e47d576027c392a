"""Pydantic models for the Stripe checkout webhook receiver."""

from .errors import ERROR_MESSAGES, ErrorCode, WebhookError
from .stripe_webhook import (
    CHECKOUT_SESSION_COMPLETED,
    AutomationNotification,
    CheckoutSession,
    CustomerDetails,
    StripeEvent,
    utc_timestamp,
)

__all__ = [
    # Errors
    "ErrorCode",
    "ERROR_MESSAGES",
    "WebhookError",
    # Stripe
    "CHECKOUT_SESSION_COMPLETED",
    "CheckoutSession",
    "CustomerDetails",
    "StripeEvent",
    # Automation
    "AutomationNotification",
    "utc_timestamp",
]
