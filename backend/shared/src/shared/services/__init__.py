"""Backend services for the Stripe checkout webhook receiver."""

from .automation_forwarder import AutomationForwarder
from .signature import (
    SignatureHeaderError,
    compute_signature,
    parse_signature_header,
    verify_stripe_signature,
)
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .webhook_handler import WebhookHandler

__all__ = [
    "AutomationForwarder",
    "SignatureHeaderError",
    "compute_signature",
    "parse_signature_header",
    "verify_stripe_signature",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "WebhookHandler",
]
