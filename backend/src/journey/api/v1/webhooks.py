"""Webhook endpoints for external services."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from journey.api.deps import get_orchestrator
from journey.logging_config import get_logger
from journey.payments.checkout import CheckoutOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """Handle Stripe webhook events.

    Verifies the webhook signature and processes payment events.
    Uses database-backed idempotency to prevent duplicate processing.
    """
    gateway = orchestrator.gateway
    if not gateway.webhook_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhooks not configured",
        )

    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")

    try:
        event = gateway.verify_webhook_signature(payload, sig_header)
    except ValueError as e:
        logger.warning("stripe_webhook_invalid", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    try:
        return await orchestrator.handle_webhook_event(event)
    except Exception as e:
        # Not recorded as processed, Stripe will redeliver
        logger.error("stripe_webhook_error", event_id=event.get("id"), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error processing payment",
        )
