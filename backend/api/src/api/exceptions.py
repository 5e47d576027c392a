"""FastAPI exception handlers for converting WebhookError to HTTP responses.

Stripe only looks at the status code: 2xx stops retries, anything else is
retried with backoff. Bodies are therefore short plain-text messages, and
server-side causes (missing secret, unparseable body) share one generic
message.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: missing or invalid Stripe-Signature
- 405 Method Not Allowed: anything but POST/OPTIONS on the webhook route
- 500 Internal Server Error: configuration or payload faults

Usage:
    from api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from shared.models.errors import ERROR_MESSAGES, ErrorCode, WebhookError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, stripe-signature",
}

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.METHOD_NOT_ALLOWED: HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.MISSING_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.CONFIGURATION_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INVALID_PAYLOAD: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 500 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_500_INTERNAL_SERVER_ERROR)


async def webhook_error_handler(request: Request, exc: WebhookError) -> PlainTextResponse:
    """Handle WebhookError exceptions and convert to a plain-text response.

    Client-side rejections are logged at WARNING, server-side faults at
    ERROR (with the underlying exception, if any).

    Args:
        request: The incoming request
        exc: The WebhookError exception

    Returns:
        PlainTextResponse with the public message, status and CORS headers.
    """
    status_code = get_http_status_for_error(exc.code)

    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "Webhook %s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.__cause__,
        )
    else:
        logger.warning(
            "Webhook %s %s rejected: %s", request.method, request.url.path, exc
        )

    return PlainTextResponse(
        exc.message,
        status_code=status_code,
        headers=CORS_HEADERS,
    )


async def method_not_allowed_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """Answer routing-level 405s like the route's own method gate.

    Methods the route does not declare (TRACE, custom verbs) are rejected by
    the router before the handler runs. Other HTTP errors keep FastAPI's
    default response.
    """
    if exc.status_code != HTTP_405_METHOD_NOT_ALLOWED:
        return await http_exception_handler(request, exc)

    logger.warning(
        "Webhook %s %s rejected: method not allowed", request.method, request.url.path
    )
    headers = {**(exc.headers or {}), **CORS_HEADERS}
    return PlainTextResponse(
        ERROR_MESSAGES[ErrorCode.METHOD_NOT_ALLOWED],
        status_code=HTTP_405_METHOD_NOT_ALLOWED,
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(WebhookError, webhook_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)  # type: ignore[arg-type]
