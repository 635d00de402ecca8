"""
Payment gateway webhooks.

Status codes are chosen for the sender's retry behaviour:
- Stripe retries on any non-2xx, so 400/500 are only returned when the
  event was not applied and retrying might help or the operator must look.
- Asaas errors are acknowledged with 200 once the request is authentic,
  since a retry storm cannot fix a local processing problem.
"""
import hmac
import json
import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import WebhookAuthenticationError, WebhookIntegrityError
from app.core.logging_config import sanitize_log_data
from app.core.plan_limits import build_stripe_price_tiers
from app.schemas.webhooks import AsaasWebhookEvent, StripeEvent
from app.services.billing_service import reconcile_asaas_event, reconcile_stripe_event
from app.services.stripe_service import StripeGateway
from app.api.routes.billing import get_stripe_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing/webhook", tags=["Billing Webhook"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    payload = await request.body()

    try:
        raw_event = gateway.verify_webhook(payload, stripe_signature)
        event = StripeEvent.model_validate(raw_event)
    except (WebhookAuthenticationError, ValidationError) as e:
        logger.error(f"Stripe webhook rejected: {e}")
        return PlainTextResponse(f"Webhook Error: {e}", status_code=400)

    if not event.is_subscription_event:
        return {"received": True}

    try:
        await run_in_threadpool(reconcile_stripe_event, db, event, gateway, build_stripe_price_tiers(settings))
    except ValidationError as e:
        logger.error(f"Stripe event {event.id} ({event.type}) has an invalid subscription object: {e}")
        return PlainTextResponse("Webhook Error: invalid subscription object", status_code=400)
    except WebhookIntegrityError as e:
        logger.error(f"Stripe event {event.id} ({event.type}) cannot be applied: {e}")
        return PlainTextResponse("User uid not found.", status_code=400)
    except Exception as e:
        await run_in_threadpool(db.rollback)
        logger.error(
            f"Error processing Stripe event {event.id} ({event.type}): {e}",
            exc_info=True,
        )
        return PlainTextResponse("Internal error while processing the webhook.", status_code=500)

    return {"received": True}


@router.post("/asaas")
async def asaas_webhook(
    request: Request,
    asaas_webhook_token: str = Header(None, alias="asaas-webhook-token"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    logger.info("Asaas webhook received")

    expected = settings.asaas_webhook_token
    if not expected or not asaas_webhook_token or not hmac.compare_digest(
        asaas_webhook_token.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Invalid Asaas webhook token")
        return PlainTextResponse("Forbidden: invalid webhook token", status_code=403)

    payload = await request.body()
    try:
        body = json.loads(payload)
        event = AsaasWebhookEvent.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Asaas webhook with invalid structure: {e}")
        return PlainTextResponse("Bad Request: invalid event structure", status_code=400)

    subscription_id = event.subscription.id
    try:
        logger.info(f"Processing Asaas event '{event.event}' for subscription {subscription_id}")
        await run_in_threadpool(reconcile_asaas_event, db, event)
    except Exception as e:
        await run_in_threadpool(db.rollback)
        logger.error(
            f"Error processing Asaas event {event.event} for subscription {subscription_id}: {e} "
            f"(payload={sanitize_log_data(body)})",
            exc_info=True,
        )
        return PlainTextResponse(f"OK (error processing subscription {subscription_id})", status_code=200)

    return PlainTextResponse("OK", status_code=200)
