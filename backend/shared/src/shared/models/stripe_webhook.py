"""Stripe webhook event models and the notification forwarded to automation.

Only the fields the receiver reads are declared; anything else Stripe sends
is ignored. Every field is optional so a recognised event with missing
sub-fields is still forwarded, with nulls in place of the absent values.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class StripeEvent(BaseModel):
    """Envelope of a Stripe webhook event, tagged by `type`.

    Envelope fields are kept as received. Events we do not handle are
    acknowledged whatever they carry; the data object is validated only by
    the branch that reads it.
    """

    model_config = ConfigDict(extra="ignore")

    id: Any = Field(
        default=None,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    type: Any = Field(
        default=None,
        description="Stripe event type",
        examples=[CHECKOUT_SESSION_COMPLETED, "payment_intent.created"],
    )
    created: Any = Field(
        default=None,
        description="Unix timestamp the event was created at",
    )
    livemode: Any = None
    data: Any = None

    @property
    def event_type(self) -> str | None:
        """The event type, or None when `type` is absent or not a string."""
        return self.type if isinstance(self.type, str) else None

    @property
    def data_object(self) -> Any:
        """The event's data object as received.

        An empty mapping when `data` or `data.object` is absent; None when
        `data` is not a JSON object.
        """
        if self.data is None:
            return {}
        if not isinstance(self.data, dict):
            return None
        return self.data.get("object", {})


class CustomerDetails(BaseModel):
    """Customer details collected during checkout."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    name: str | None = None


class CheckoutSession(BaseModel):
    """The checkout.session object carried by checkout.session.completed."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, examples=["cs_test_a1b2c3"])
    client_reference_id: str | None = Field(
        default=None,
        description="Lead ID created earlier in the funnel",
        examples=["lead_42"],
    )
    customer_details: CustomerDetails | None = None
    customer_email: str | None = None
    customer: str | None = None
    payment_intent: str | None = None
    amount_total: int | None = Field(default=None, description="Amount in minor units")
    currency: str | None = Field(default=None, examples=["brl"])
    payment_status: str | None = Field(default=None, examples=["paid", "unpaid"])
    metadata: dict[str, Any] | None = None

    @property
    def email(self) -> str | None:
        """Customer e-mail, preferring the one collected at checkout."""
        if self.customer_details is not None and self.customer_details.email:
            return self.customer_details.email
        return self.customer_email or None


def utc_timestamp(now: dt.datetime | None = None) -> str:
    """Format a UTC instant as ISO-8601 with milliseconds and a Z suffix."""
    moment = (now or dt.datetime.now(dt.UTC)).astimezone(dt.UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AutomationNotification(BaseModel):
    """Payload posted to the automation webhook after a completed checkout."""

    event_type: str = Field(..., examples=[CHECKOUT_SESSION_COMPLETED])
    checkout_session_id: str | None = None
    client_reference_id: str | None = None
    customer_email: str | None = None
    customer_id: str | None = None
    payment_intent_id: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    payment_status: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: str = Field(
        default_factory=utc_timestamp,
        description="When the notification was generated (UTC, ISO-8601)",
        examples=["2026-01-01T12:00:00.000Z"],
    )

    @classmethod
    def from_checkout_session(
        cls,
        session: CheckoutSession,
        *,
        event_type: str = CHECKOUT_SESSION_COMPLETED,
        now: dt.datetime | None = None,
    ) -> "AutomationNotification":
        """Project a completed checkout session onto the notification shape.

        Args:
            session: Parsed checkout session
            event_type: Event type tag to forward
            now: Generation time override (defaults to current UTC time)

        Returns:
            Notification ready to be JSON-encoded and forwarded.
        """
        return cls(
            event_type=event_type,
            checkout_session_id=session.id,
            client_reference_id=session.client_reference_id,
            customer_email=session.email,
            customer_id=session.customer,
            payment_intent_id=session.payment_intent,
            amount_total=session.amount_total,
            currency=session.currency,
            payment_status=session.payment_status,
            metadata=session.metadata or {},
            timestamp=utc_timestamp(now),
        )
