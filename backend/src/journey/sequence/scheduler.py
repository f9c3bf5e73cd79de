"""Daily drip campaign.

Run once a day (cron). For every step of the sequence, entries that joined
exactly ``day`` days before today (UTC) and have not received that email yet
get it. An email is recorded only after SendGrid accepted it, so a failed
send is retried by the next run.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError

from journey.email.service import EmailService, email_service
from journey.email.templates import render_sequence_email
from journey.exceptions import EntryNotFoundError
from journey.logging_config import get_logger
from journey.sequence.models import EmailType, SequenceTracking
from journey.storage.db import Database, db
from journey.storage.models import utcnow
from journey.waitlist.models import PaymentStatus, SubscriberPreferences, WaitlistEntry
from journey.waitlist.store import EntryStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SequenceStep:
    day: int
    email_type: EmailType
    subject: str


SEQUENCE: tuple[SequenceStep, ...] = (
    SequenceStep(1, EmailType.WELCOME, "Welcome to The Ultimate Journey"),
    SequenceStep(3, EmailType.CONTENT_PREVIEW, "Exclusive Content Preview: What's Coming Next"),
    SequenceStep(7, EmailType.BOARDING_REMINDER, "Your Boarding Pass is Ready"),
    SequenceStep(14, EmailType.EXCLUSIVE_OFFER, "Exclusive Offer: Early Access to The Ultimate Journey"),
)

# Entries that made it onto the waitlist
ENROLLED_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.SKIPPED)


@dataclass
class SequenceRunSummary:
    """Counters for one scheduler run."""

    sent: int = 0
    skipped_unsubscribed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class _Recipient:
    entry_id: int
    email: str
    first_name: Optional[str]
    queue_position: int
    unsubscribed: bool


def day_anchor(now: datetime) -> datetime:
    """Start of the UTC day of ``now``, as a naive datetime."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class DripScheduler:
    """Sends the day 1, 3, 7 and 14 emails."""

    def __init__(
        self,
        database: Optional[Database] = None,
        emails: Optional[EmailService] = None,
        steps: tuple[SequenceStep, ...] = SEQUENCE,
    ):
        self.db = database or db
        self.emails = emails or email_service
        self.steps = steps

    async def run(self, now: Optional[datetime] = None) -> SequenceRunSummary:
        """Process every step once.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            What was sent, skipped and failed
        """
        anchor = day_anchor(now or utcnow())
        summary = SequenceRunSummary()
        logger.info("sequence_run_started", anchor=anchor.isoformat())

        for step in self.steps:
            try:
                recipients = self._due_recipients(step, anchor)
            except Exception as e:
                logger.error("sequence_step_failed", day=step.day, email_type=step.email_type.value, error=str(e))
                continue

            for recipient in recipients:
                if recipient.unsubscribed:
                    summary.skipped_unsubscribed += 1
                    logger.debug("sequence_skipped_unsubscribed", entry_id=recipient.entry_id, day=step.day)
                    continue
                await self._deliver(step, recipient, summary)

        logger.info(
            "sequence_run_finished",
            anchor=anchor.isoformat(),
            sent=summary.sent,
            skipped_unsubscribed=summary.skipped_unsubscribed,
            failed=summary.failed,
        )
        return summary

    def _due_recipients(self, step: SequenceStep, anchor: datetime) -> list[_Recipient]:
        """Entries created on the step's day that have not had its email."""
        window_start = anchor - timedelta(days=step.day)
        window_end = window_start + timedelta(days=1)

        already_sent = exists().where(
            SequenceTracking.waitlist_entry_id == WaitlistEntry.id,
            SequenceTracking.email_type == step.email_type,
        )

        with self.db.session() as session:
            rows = (
                session.query(WaitlistEntry, SubscriberPreferences.unsubscribed)
                .outerjoin(
                    SubscriberPreferences,
                    SubscriberPreferences.waitlist_entry_id == WaitlistEntry.id,
                )
                .filter(
                    WaitlistEntry.created_at >= window_start,
                    WaitlistEntry.created_at < window_end,
                    WaitlistEntry.payment_status.in_(ENROLLED_STATUSES),
                    ~already_sent,
                )
                .order_by(WaitlistEntry.queue_position)
                .all()
            )
            return [
                _Recipient(
                    entry_id=entry.id,
                    email=entry.email,
                    first_name=entry.first_name,
                    queue_position=entry.queue_position,
                    unsubscribed=bool(unsubscribed),
                )
                for entry, unsubscribed in rows
            ]

    async def _deliver(self, step: SequenceStep, recipient: _Recipient, summary: SequenceRunSummary) -> None:
        email = render_sequence_email(
            step.email_type,
            step.subject,
            recipient.first_name,
            recipient.queue_position,
        )
        try:
            delivered = await self.emails.send_rendered(recipient.email, email)
        except Exception as e:
            summary.failed += 1
            logger.error(
                "sequence_email_failed",
                entry_id=recipient.entry_id,
                email_type=step.email_type.value,
                error=str(e),
            )
            return

        if not delivered:
            summary.failed += 1
            logger.warning("sequence_email_not_sent", entry_id=recipient.entry_id, email_type=step.email_type.value)
            return

        summary.sent += 1
        try:
            self._record_sent(step, recipient.entry_id)
        except IntegrityError:
            logger.warning("sequence_already_recorded", entry_id=recipient.entry_id, email_type=step.email_type.value)
        except Exception as e:
            logger.error(
                "sequence_record_failed",
                entry_id=recipient.entry_id,
                email_type=step.email_type.value,
                error=str(e),
            )

    def _record_sent(self, step: SequenceStep, entry_id: int) -> None:
        with self.db.session() as session:
            session.add(
                SequenceTracking(
                    waitlist_entry_id=entry_id,
                    sequence_day=step.day,
                    email_type=step.email_type,
                    sent_at=utcnow(),
                )
            )
        logger.info("sequence_email_sent", entry_id=entry_id, day=step.day, email_type=step.email_type.value)

    def get_sequence_status(self, email: str) -> list[dict[str, Any]]:
        """Drip emails recorded for an entry, in sequence order.

        Raises:
            EntryNotFoundError: If the email is not on the waitlist
        """
        with self.db.session() as session:
            entry = EntryStore(session).get_by_email(email)
            if entry is None:
                raise EntryNotFoundError(f"No waitlist entry for {email}")

            records = (
                session.query(SequenceTracking)
                .filter(SequenceTracking.waitlist_entry_id == entry.id)
                .order_by(SequenceTracking.sequence_day)
                .all()
            )
            return [
                {
                    "sequence_day": r.sequence_day,
                    "email_type": r.email_type.value,
                    "sent_at": r.sent_at,
                    "opened_at": r.opened_at,
                    "clicked_at": r.clicked_at,
                    "bounced": bool(r.bounced),
                }
                for r in records
            ]
