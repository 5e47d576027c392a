"""Standard error codes for the Stripe webhook receiver.

Every failure that changes the HTTP status returned to Stripe is raised as a
WebhookError carrying one of these codes. Forwarding failures towards the
automation endpoint are never raised; they are logged and absorbed.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Error codes for webhook delivery failures."""

    # Protocol errors
    METHOD_NOT_ALLOWED = "ERR_WEBHOOK_001"
    MISSING_SIGNATURE = "ERR_WEBHOOK_002"

    # Authentication errors
    INVALID_SIGNATURE = "ERR_WEBHOOK_003"

    # Server-side errors
    CONFIGURATION_ERROR = "ERR_WEBHOOK_004"
    INVALID_PAYLOAD = "ERR_WEBHOOK_005"


# Public response text. Deliberately generic for server-side errors so a
# caller cannot tell a missing secret from a broken payload.
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.METHOD_NOT_ALLOWED: "Method not allowed",
    ErrorCode.MISSING_SIGNATURE: "Missing signature",
    ErrorCode.INVALID_SIGNATURE: "Invalid signature",
    ErrorCode.CONFIGURATION_ERROR: "Internal server error",
    ErrorCode.INVALID_PAYLOAD: "Internal server error",
}


class WebhookError(Exception):
    """Exception raised while validating an incoming webhook delivery.

    Converted to an HTTP response by the handlers in api.exceptions.
    The details are for logs only and never reach the response body.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.code.value}: {self.message} ({self.details})"
        return f"{self.code.value}: {self.message}"
