"""Subscriber email preferences."""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from journey.exceptions import EntryNotFoundError
from journey.logging_config import get_logger
from journey.storage.db import Database, db
from journey.storage.models import utcnow
from journey.waitlist.models import EmailFrequency, SubscriberPreferences
from journey.waitlist.store import EntryStore

logger = get_logger(__name__)


@dataclass
class PreferencesView:
    """Effective preferences for an entry, stored or default."""

    email: str
    email_frequency: EmailFrequency = EmailFrequency.WEEKLY
    receive_promotional: bool = True
    receive_product_updates: bool = True
    unsubscribed: bool = False

    @classmethod
    def from_row(cls, email: str, prefs: SubscriberPreferences | None) -> "PreferencesView":
        if prefs is None:
            return cls(email=email)
        return cls(
            email=email,
            email_frequency=prefs.email_frequency,
            receive_promotional=bool(prefs.receive_promotional),
            receive_product_updates=bool(prefs.receive_product_updates),
            unsubscribed=bool(prefs.unsubscribed),
        )


def find_preferences(session: Session, entry_id: int) -> SubscriberPreferences | None:
    """Stored preferences row for an entry, if any."""
    return (
        session.query(SubscriberPreferences)
        .filter(SubscriberPreferences.waitlist_entry_id == entry_id)
        .first()
    )


class PreferencesService:
    """Reads and edits subscriber preferences.

    Rows are created lazily on the first edit.
    """

    def __init__(self, database: Database | None = None):
        self.db = database or db

    def _get_or_create(self, session: Session, entry_id: int) -> SubscriberPreferences:
        prefs = find_preferences(session, entry_id)
        if prefs is None:
            prefs = SubscriberPreferences(
                waitlist_entry_id=entry_id,
                email_frequency=EmailFrequency.WEEKLY,
                receive_promotional=True,
                receive_product_updates=True,
                unsubscribed=False,
            )
            session.add(prefs)
            session.flush()
        return prefs

    def _require_entry(self, session: Session, email: str):
        entry = EntryStore(session).get_by_email(email)
        if entry is None:
            raise EntryNotFoundError(f"No waitlist entry for {email}")
        return entry

    def get_preferences(self, email: str) -> PreferencesView:
        """Get effective preferences without creating a row."""
        with self.db.session() as session:
            entry = self._require_entry(session, email)
            return PreferencesView.from_row(entry.email, find_preferences(session, entry.id))

    def update_preferences(
        self,
        email: str,
        email_frequency: EmailFrequency | None = None,
        receive_promotional: bool | None = None,
        receive_product_updates: bool | None = None,
    ) -> PreferencesView:
        """Update the given fields, leaving the others untouched."""
        with self.db.session() as session:
            entry = self._require_entry(session, email)
            prefs = self._get_or_create(session, entry.id)

            if email_frequency is not None:
                prefs.email_frequency = email_frequency
            if receive_promotional is not None:
                prefs.receive_promotional = receive_promotional
            if receive_product_updates is not None:
                prefs.receive_product_updates = receive_product_updates
            prefs.updated_at = utcnow()

            logger.info("preferences_updated", email=entry.email)
            return PreferencesView.from_row(entry.email, prefs)

    def set_unsubscribed(self, email: str, unsubscribed: bool) -> PreferencesView:
        """Set or clear the unsubscribed flag."""
        with self.db.session() as session:
            entry = self._require_entry(session, email)
            prefs = self._get_or_create(session, entry.id)
            prefs.unsubscribed = unsubscribed
            prefs.updated_at = utcnow()

            logger.info("subscription_changed", email=entry.email, unsubscribed=unsubscribed)
            return PreferencesView.from_row(entry.email, prefs)

    def unsubscribe(self, email: str) -> PreferencesView:
        return self.set_unsubscribed(email, True)

    def resubscribe(self, email: str) -> PreferencesView:
        return self.set_unsubscribed(email, False)
