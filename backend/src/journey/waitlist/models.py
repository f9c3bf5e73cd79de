"""Waitlist database models."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text

from journey.storage.models import Base, utcnow


class PaymentStatus(str, Enum):
    """Payment state of a waitlist signup."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"      # Joined through the free path


class EmailFrequency(str, Enum):
    """How often a subscriber wants to hear from us."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


class WaitlistEntry(Base):
    """One signup on the waitlist, identified by email.

    The queue position is assigned once at creation and never changes.
    The VIP flag is only ever switched on.
    """
    __tablename__ = "waitlist_entries"

    id = Column(Integer, primary_key=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    first_name = Column(Text, nullable=True)
    queue_position = Column(Integer, unique=True, nullable=False)

    # Payment
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    boarding_pass_sent_at = Column(DateTime, nullable=True)

    # Referrals
    referral_code = Column(String(32), unique=True, nullable=True, index=True)
    is_vip = Column(Boolean, default=False, nullable=False)
    successful_referrals = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<WaitlistEntry(id={self.id}, email={self.email}, position={self.queue_position})>"


class QueueCounter(Base):
    """Named sequence holding the last assigned queue position.

    Incremented in the same transaction as the entry insert.
    """
    __tablename__ = "queue_counters"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<QueueCounter(name={self.name}, value={self.value})>"


class SubscriberPreferences(Base):
    """Email preferences for a waitlist entry.

    Created on first edit; a missing row means all defaults.
    """
    __tablename__ = "subscriber_preferences"

    id = Column(Integer, primary_key=True)
    waitlist_entry_id = Column(
        Integer, ForeignKey("waitlist_entries.id"), unique=True, nullable=False
    )
    email_frequency = Column(SQLEnum(EmailFrequency), default=EmailFrequency.WEEKLY, nullable=False)
    receive_promotional = Column(Boolean, default=True, nullable=False)
    receive_product_updates = Column(Boolean, default=True, nullable=False)
    unsubscribed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<SubscriberPreferences(entry={self.waitlist_entry_id}, unsubscribed={self.unsubscribed})>"
