"""Stripe Checkout integration."""

from dataclasses import dataclass, field
from typing import Any

import stripe

from journey.exceptions import CheckoutCreationError, PaymentConfirmationError
from journey.logging_config import get_logger
from journey.settings import settings

logger = get_logger(__name__)

# Session statuses that count as paid
PAID_STATUSES = ("paid", "no_payment_required")


@dataclass
class CheckoutSessionData:
    """The fields of a Stripe checkout session the waitlist cares about."""

    id: str
    payment_status: str | None
    metadata: dict[str, str] = field(default_factory=dict)
    payment_intent: str | None = None
    customer: str | None = None
    amount_total: int | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status in PAID_STATUSES


def _object_id(value: Any) -> str | None:
    """Stripe returns either an id or an expanded object."""
    if value is None or isinstance(value, str):
        return value
    return value["id"]


class StripeCheckoutGateway:
    """Thin wrapper over the Stripe SDK.

    Keeps the SDK calls in one place so the orchestrator can be tested
    against a fake.
    """

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None):
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def create_session(
        self,
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        amount_cents: int | None = None,
        currency: str | None = None,
    ) -> tuple[str, str]:
        """Create a hosted Checkout session for the waitlist fee.

        Returns:
            (session id, checkout URL)

        Raises:
            CheckoutCreationError: If Stripe is not configured or the call fails
        """
        if not self.configured:
            raise CheckoutCreationError("Payment system not configured")

        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": currency or settings.checkout_currency,
                            "product_data": {
                                "name": settings.checkout_product_name,
                                "description": settings.checkout_product_description,
                            },
                            "unit_amount": amount_cents or settings.checkout_amount_cents,
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=customer_email,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("checkout_session_failed", email=customer_email, error=str(e))
            raise CheckoutCreationError("Could not create checkout session", details=str(e)) from e

        if not session.url:
            logger.error("checkout_session_without_url", session_id=session.id)
            raise CheckoutCreationError("Checkout session has no URL")

        logger.info("checkout_session_created", email=customer_email, session_id=session.id)
        return session.id, session.url

    def retrieve_session(self, session_id: str) -> CheckoutSessionData:
        """Fetch a checkout session.

        Raises:
            PaymentConfirmationError: If Stripe is not configured or the call fails
        """
        if not self.configured:
            raise PaymentConfirmationError("Payment system not configured")

        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.error("checkout_session_retrieve_failed", session_id=session_id, error=str(e))
            raise PaymentConfirmationError(
                f"Could not retrieve checkout session {session_id}", details=str(e)
            ) from e

        metadata = session.metadata.to_dict() if session.metadata else {}
        return CheckoutSessionData(
            id=session.id,
            payment_status=session.payment_status,
            metadata={k: str(v) for k, v in metadata.items() if v is not None},
            payment_intent=_object_id(session.payment_intent),
            customer=_object_id(session.customer),
            amount_total=session.amount_total,
        )

    def verify_webhook_signature(self, payload: bytes, sig_header: str) -> stripe.Event:
        """Verify and parse a Stripe webhook event.

        Args:
            payload: Raw request body
            sig_header: Stripe-Signature header value

        Returns:
            Verified Stripe event

        Raises:
            ValueError: If signature is invalid
        """
        if not self.webhook_secret:
            raise ValueError("Stripe webhook secret not configured")

        try:
            return stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise ValueError("Invalid webhook signature") from e
