"""Waitlist module.

Entries, queue positions and subscriber preferences.
"""

from journey.waitlist.models import (
    EmailFrequency,
    PaymentStatus,
    QueueCounter,
    SubscriberPreferences,
    WaitlistEntry,
)
from journey.waitlist.preferences import PreferencesService, PreferencesView
from journey.waitlist.store import EntryStore, SignupResult, VIP_REFERRAL_THRESHOLD

__all__ = [
    "EmailFrequency",
    "EntryStore",
    "PaymentStatus",
    "PreferencesService",
    "PreferencesView",
    "QueueCounter",
    "SignupResult",
    "SubscriberPreferences",
    "VIP_REFERRAL_THRESHOLD",
    "WaitlistEntry",
]
