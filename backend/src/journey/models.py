"""All database models, imported together so the metadata is complete."""

from journey.payments.models import ProcessedWebhookEvent
from journey.referral.models import ReferralRecord
from journey.sequence.models import EmailType, SequenceTracking
from journey.waitlist.models import (
    EmailFrequency,
    PaymentStatus,
    QueueCounter,
    SubscriberPreferences,
    WaitlistEntry,
)

__all__ = [
    "EmailFrequency",
    "EmailType",
    "PaymentStatus",
    "ProcessedWebhookEvent",
    "QueueCounter",
    "ReferralRecord",
    "SequenceTracking",
    "SubscriberPreferences",
    "WaitlistEntry",
]
