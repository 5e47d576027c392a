"""Webhook endpoints for external service integrations.

Provides endpoints for:
- Stripe webhook events (checkout.session.completed is forwarded to the
  automation webhook, every other type is acknowledged and ignored)

These endpoints do NOT require authentication as they receive signed
payloads from Stripe. The route accepts every method itself so that
preflight, wrong-method and error responses all carry the same CORS headers.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from starlette.status import HTTP_200_OK

from api.dependencies import get_automation_forwarder, get_webhook_settings
from api.exceptions import CORS_HEADERS
from shared.config import WebhookSettings
from shared.models.errors import ErrorCode, WebhookError
from shared.services.automation_forwarder import AutomationForwarder
from shared.services.webhook_handler import WebhookHandler, decode_body
from shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

STRIPE_SIGNATURE_HEADER = "stripe-signature"

ACCEPTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route(
    "/webhooks/stripe",
    methods=ACCEPTED_METHODS,
    response_class=Response,
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed: forwards the payment to the automation webhook

**No authentication required** - signature is verified using the Stripe webhook secret.

Always answers 200 once a delivery is verified and parsed, whether or not the
forward succeeds, so Stripe does not retry.
""",
    responses={
        200: {"description": "Event received (forwarded or ignored)"},
        400: {"description": "Missing or invalid Stripe-Signature header"},
        405: {"description": "Method other than POST or OPTIONS"},
        500: {"description": "Secret not configured or unparseable body"},
    },
)
async def handle_stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: WebhookSettings = Depends(get_webhook_settings),
    forwarder: AutomationForwarder = Depends(get_automation_forwarder),
) -> Response:
    """Handle incoming Stripe webhook deliveries.

    Verifies the signature over the raw body, parses the event and schedules
    the forward to run after the response has been produced.
    """
    if request.method == "OPTIONS":
        return Response(status_code=HTTP_200_OK, headers=CORS_HEADERS)

    if request.method != "POST":
        raise WebhookError(
            ErrorCode.METHOD_NOT_ALLOWED,
            details={"method": request.method},
        )

    if not settings.has_secret:
        logger.error("STRIPE_WEBHOOK_SECRET environment variable not set")
        raise WebhookError(ErrorCode.CONFIGURATION_ERROR)

    signature = request.headers.get(STRIPE_SIGNATURE_HEADER)
    if not signature:
        raise WebhookError(ErrorCode.MISSING_SIGNATURE)

    # Signature covers the exact bytes received; read before any parsing.
    raw_body = decode_body(await request.body())

    handler = WebhookHandler(webhook_secret=settings.webhook_secret)
    notification = handler.process(raw_body, signature)

    if notification is not None:
        background_tasks.add_task(forwarder.forward, notification)

    return Response(status_code=HTTP_200_OK, headers=CORS_HEADERS)
