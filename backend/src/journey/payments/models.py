"""Payment-side database models."""

from sqlalchemy import Column, DateTime, Integer, String

from journey.storage.models import Base, utcnow


class ProcessedWebhookEvent(Base):
    """Tracks processed webhook events for idempotency.

    Prevents duplicate processing of Stripe deliveries.
    Stored in database to survive server restarts and work across multiple processes.
    """
    __tablename__ = "processed_webhook_events"

    id = Column(Integer, primary_key=True)
    event_id = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(100), nullable=False)  # e.g., "checkout.session.completed"
    source = Column(String(50), nullable=False)  # e.g., "stripe"
    processed_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<ProcessedWebhookEvent(id={self.event_id}, type={self.event_type})>"
