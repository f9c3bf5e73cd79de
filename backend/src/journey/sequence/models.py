"""Drip sequence tracking models."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint

from journey.storage.models import Base, utcnow


class EmailType(str, Enum):
    """Emails of the drip sequence."""
    WELCOME = "welcome"
    CONTENT_PREVIEW = "content_preview"
    BOARDING_REMINDER = "boarding_reminder"
    EXCLUSIVE_OFFER = "exclusive_offer"


class SequenceTracking(Base):
    """Marks a drip email as sent to an entry.

    The (entry, email type) pair is unique so an email is never recorded twice.
    """
    __tablename__ = "email_sequence_tracking"

    id = Column(Integer, primary_key=True)
    waitlist_entry_id = Column(Integer, ForeignKey("waitlist_entries.id"), nullable=False, index=True)
    sequence_day = Column(Integer, nullable=False)  # 1, 3, 7, 14
    email_type = Column(SQLEnum(EmailType), nullable=False)

    # Engagement
    sent_at = Column(DateTime, nullable=True)
    opened_at = Column(DateTime, nullable=True)
    clicked_at = Column(DateTime, nullable=True)
    bounced = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("waitlist_entry_id", "email_type", name="uq_sequence_entry_type"),
    )

    def __repr__(self):
        return f"<SequenceTracking(entry={self.waitlist_entry_id}, type={self.email_type})>"
