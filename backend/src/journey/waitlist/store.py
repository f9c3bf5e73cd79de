"""Entry store: waitlist entries, queue positions and referral bookkeeping."""

import secrets
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from journey.exceptions import DuplicateEmailError, EntryNotFoundError
from journey.logging_config import get_logger
from journey.storage.models import utcnow
from journey.waitlist.models import PaymentStatus, QueueCounter, WaitlistEntry

logger = get_logger(__name__)

QUEUE_COUNTER_NAME = "waitlist"

# Successful referrals needed for VIP status
VIP_REFERRAL_THRESHOLD = 3

# Uppercase letters and digits without 0, O, I, 1
REFERRAL_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 8


def normalize_email(email: str) -> str:
    """Canonical form used as the entry identity."""
    return email.strip().lower()


def generate_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Generate a short, readable referral code (e.g. ``K7QW2MZP``)."""
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


def seed_queue_counter(session: Session) -> QueueCounter:
    """Create the queue counter row if missing.

    A fresh counter starts at the highest position already assigned so
    databases populated before the counter existed keep counting from there.
    """
    counter = session.get(QueueCounter, QUEUE_COUNTER_NAME)
    if counter is None:
        current_max = session.query(func.max(WaitlistEntry.queue_position)).scalar() or 0
        counter = QueueCounter(name=QUEUE_COUNTER_NAME, value=current_max)
        session.add(counter)
        session.flush()
    return counter


@dataclass
class SignupResult:
    """What a visitor gets back after joining."""

    email: str
    queue_position: int
    referral_code: str
    is_vip: bool
    successful_referrals: int

    @classmethod
    def from_entry(cls, entry: WaitlistEntry) -> "SignupResult":
        return cls(
            email=entry.email,
            queue_position=entry.queue_position,
            referral_code=entry.referral_code or "",
            is_vip=bool(entry.is_vip),
            successful_referrals=entry.successful_referrals or 0,
        )


class EntryStore:
    """Repository for waitlist entries.

    Works inside the caller's session; the caller owns the transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> WaitlistEntry | None:
        """Get entry by email."""
        return (
            self.session.query(WaitlistEntry)
            .filter(WaitlistEntry.email == normalize_email(email))
            .first()
        )

    def get_by_id(self, entry_id: int) -> WaitlistEntry | None:
        """Get entry by ID."""
        return self.session.get(WaitlistEntry, entry_id)

    def get_by_referral_code(self, code: str) -> WaitlistEntry | None:
        """Get the entry owning a referral code."""
        return (
            self.session.query(WaitlistEntry)
            .filter(WaitlistEntry.referral_code == code.strip().upper())
            .first()
        )

    def total_count(self) -> int:
        """Highest assigned queue position (0 when empty)."""
        return self.session.query(func.max(WaitlistEntry.queue_position)).scalar() or 0

    def peek_queue_position(self) -> int:
        """Position the next signup would get right now, without reserving it."""
        return self.total_count() + 1

    def next_queue_position(self) -> int:
        """Reserve the next queue position.

        The counter is bumped with a single UPDATE so the row stays locked
        until the surrounding transaction ends; a rollback hands the position
        back.
        """
        stmt = (
            update(QueueCounter)
            .where(QueueCounter.name == QUEUE_COUNTER_NAME)
            .values(value=QueueCounter.value + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            seed_queue_counter(self.session)
            self.session.execute(stmt)

        return self.session.execute(
            select(QueueCounter.value).where(QueueCounter.name == QUEUE_COUNTER_NAME)
        ).scalar_one()

    def create_entry(
        self,
        email: str,
        first_name: str | None = None,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        stripe_payment_intent_id: str | None = None,
        stripe_customer_id: str | None = None,
        boarding_pass_sent_at: datetime | None = None,
    ) -> WaitlistEntry:
        """Create a new entry with the next queue position.

        Raises:
            DuplicateEmailError: If the email is already on the waitlist
        """
        email = normalize_email(email)
        if self.get_by_email(email) is not None:
            raise DuplicateEmailError(email)

        entry = WaitlistEntry(
            email=email,
            first_name=first_name or None,
            queue_position=self.next_queue_position(),
            payment_status=payment_status,
            stripe_payment_intent_id=stripe_payment_intent_id,
            stripe_customer_id=stripe_customer_id,
            boarding_pass_sent_at=boarding_pass_sent_at,
        )
        self.session.add(entry)
        try:
            self.session.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent signup for the same email
            raise DuplicateEmailError(email) from e

        logger.info(
            "entry_created",
            entry_id=entry.id,
            email=email,
            queue_position=entry.queue_position,
            payment_status=payment_status.value,
        )
        return entry

    def mark_completed(
        self,
        email: str,
        stripe_payment_intent_id: str | None = None,
        stripe_customer_id: str | None = None,
    ) -> WaitlistEntry:
        """Move a pending entry to completed and stamp the boarding pass.

        Entries in any other state are returned unchanged.
        """
        entry = self.get_by_email(email)
        if entry is None:
            raise EntryNotFoundError(f"No waitlist entry for {email}")

        if entry.payment_status != PaymentStatus.PENDING:
            logger.info(
                "mark_completed_skipped",
                email=entry.email,
                payment_status=entry.payment_status.value,
            )
            return entry

        entry.payment_status = PaymentStatus.COMPLETED
        entry.stripe_payment_intent_id = stripe_payment_intent_id
        entry.stripe_customer_id = stripe_customer_id
        entry.boarding_pass_sent_at = utcnow()
        self.session.flush()

        logger.info("entry_payment_completed", email=entry.email)
        return entry

    def increment_referrals_and_maybe_promote(self, entry_id: int) -> bool:
        """Credit one successful referral.

        Returns:
            True if this referral just promoted the entry to VIP
        """
        # SELECT FOR UPDATE so concurrent referrals don't lose increments
        entry = (
            self.session.query(WaitlistEntry)
            .filter(WaitlistEntry.id == entry_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if entry is None:
            raise EntryNotFoundError(f"No waitlist entry with id {entry_id}")

        entry.successful_referrals = (entry.successful_referrals or 0) + 1
        promoted = entry.successful_referrals >= VIP_REFERRAL_THRESHOLD and not entry.is_vip
        if promoted:
            entry.is_vip = True
        entry.updated_at = utcnow()
        self.session.flush()

        logger.info(
            "referral_credited",
            entry_id=entry_id,
            successful_referrals=entry.successful_referrals,
            promoted_to_vip=promoted,
        )
        return promoted

    def mint_referral_code(self, entry_id: int) -> str:
        """Get the entry's referral code, creating one if needed."""
        entry = self.get_by_id(entry_id)
        if entry is None:
            raise EntryNotFoundError(f"No waitlist entry with id {entry_id}")

        if entry.referral_code:
            return entry.referral_code

        code = generate_referral_code()
        attempts = 0
        while attempts < 10 and self.get_by_referral_code(code) is not None:
            code = generate_referral_code()
            attempts += 1

        entry.referral_code = code
        self.session.flush()

        logger.info("referral_code_minted", entry_id=entry_id, code=code)
        return code

    def stats(self) -> dict[str, int]:
        """Entry counts for reporting."""
        by_status = dict(
            self.session.query(WaitlistEntry.payment_status, func.count(WaitlistEntry.id))
            .group_by(WaitlistEntry.payment_status)
            .all()
        )
        vip = self.session.query(func.count(WaitlistEntry.id)).filter(WaitlistEntry.is_vip.is_(True)).scalar()
        return {
            "total": self.total_count(),
            "paid": by_status.get(PaymentStatus.COMPLETED, 0),
            "skipped": by_status.get(PaymentStatus.SKIPPED, 0),
            "pending": by_status.get(PaymentStatus.PENDING, 0),
            "vip": vip or 0,
        }
