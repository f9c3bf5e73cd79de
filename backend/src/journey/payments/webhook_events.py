"""Database-backed idempotency for webhook deliveries."""

from sqlalchemy.exc import IntegrityError

from journey.logging_config import get_logger
from journey.payments.models import ProcessedWebhookEvent
from journey.storage.db import Database
from journey.storage.models import utcnow

logger = get_logger(__name__)


def is_event_processed(database: Database, event_id: str, source: str = "stripe") -> bool:
    """Check if a webhook event has already been processed.

    Args:
        database: Database to query
        event_id: The unique event ID from the webhook source
        source: The webhook source (e.g., "stripe")

    Returns:
        True if already processed, False otherwise
    """
    with database.session() as session:
        existing = session.query(ProcessedWebhookEvent).filter(
            ProcessedWebhookEvent.event_id == event_id,
            ProcessedWebhookEvent.source == source,
        ).first()
        return existing is not None


def mark_event_processed(
    database: Database,
    event_id: str,
    event_type: str,
    source: str = "stripe",
) -> None:
    """Mark a webhook event as processed.

    A concurrent delivery that already recorded the event is not an error.
    """
    try:
        with database.session() as session:
            session.add(
                ProcessedWebhookEvent(
                    event_id=event_id,
                    event_type=event_type,
                    source=source,
                    processed_at=utcnow(),
                )
            )
    except IntegrityError:
        logger.info("webhook_event_already_recorded", event_id=event_id, source=source)
