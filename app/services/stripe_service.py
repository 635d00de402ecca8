"""
Stripe gateway: webhook verification, customers and checkout sessions.
"""
import json
import logging
from typing import Any, Dict

import stripe

from app.core.config import Settings
from app.core.exceptions import PaymentGatewayError, WebhookAuthenticationError

logger = logging.getLogger(__name__)

PROVIDER = "stripe"

# Stripe customer metadata key holding our user uid
CUSTOMER_UID_METADATA_KEY = "user_uid"


class StripeGateway:
    """
    Thin wrapper over the Stripe SDK.

    The API key is passed on every call instead of being set on the stripe
    module, so several configurations can coexist in one process.
    """

    def __init__(self, settings: Settings):
        self.api_key = settings.stripe_secret_key
        self.webhook_secret = settings.stripe_webhook_secret

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise PaymentGatewayError(PROVIDER, "Stripe not configured - STRIPE_SECRET_KEY required")
        return self.api_key

    def verify_webhook(self, request_body: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a Stripe webhook against the raw request body and parse it.

        Args:
            request_body: Raw request body bytes, exactly as received
            signature: Stripe-Signature header value

        Returns:
            Parsed event dictionary

        Raises:
            WebhookAuthenticationError: If the secret is missing or verification fails
        """
        if not self.webhook_secret:
            raise WebhookAuthenticationError("STRIPE_WEBHOOK_SECRET not configured")
        if not signature:
            raise WebhookAuthenticationError("Missing Stripe-Signature header")

        try:
            stripe.Webhook.construct_event(request_body, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookAuthenticationError(f"Invalid signature: {e}") from e
        except ValueError as e:
            raise WebhookAuthenticationError(f"Invalid webhook payload: {e}") from e

        # Parse the verified body ourselves so validation sees plain JSON
        event = json.loads(request_body)
        logger.info(f"Verified Stripe webhook event: {event.get('type')}, id={event.get('id')}")
        return event

    def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        try:
            customer = stripe.Customer.retrieve(customer_id, api_key=self._require_api_key())
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving customer {customer_id}: {e}")
            raise PaymentGatewayError(PROVIDER, "Failed to retrieve customer", getattr(e, "json_body", None)) from e
        return customer

    def create_customer(self, uid: str, email: str, name: str) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._require_api_key(),
                email=email,
                name=name,
                metadata={CUSTOMER_UID_METADATA_KEY: uid},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating customer for uid={uid}: {e}")
            raise PaymentGatewayError(PROVIDER, "Failed to create customer", getattr(e, "json_body", None)) from e

        logger.info(f"Created Stripe customer {customer.id} for uid={uid}")
        return customer.id

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
    ):
        try:
            session = stripe.checkout.Session.create(
                api_key=self._require_api_key(),
                customer=customer_id,
                payment_method_types=["card"],
                mode="subscription",
                line_items=[{
                    "price": price_id,
                    "quantity": 1,
                }],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session for customer {customer_id}: {e}")
            raise PaymentGatewayError(PROVIDER, "Failed to create checkout session", getattr(e, "json_body", None)) from e

        logger.info(f"Created checkout session: session_id={session.id}, customer_id={customer_id}, price_id={price_id}")
        return session


def get_customer_uid(customer: Any) -> str:
    """Read our user uid back from a Stripe customer's metadata ('' if absent)."""
    metadata = getattr(customer, "metadata", None)
    if metadata is None:
        return ""
    return getattr(metadata, CUSTOMER_UID_METADATA_KEY, None) or ""
