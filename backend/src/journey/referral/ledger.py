"""Referral ledger: redeeming codes and crediting referrers."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from journey.exceptions import InvalidReferralCodeError
from journey.logging_config import get_logger
from journey.referral.models import ReferralRecord
from journey.settings import settings
from journey.storage.db import Database, db
from journey.storage.models import utcnow
from journey.waitlist.models import WaitlistEntry
from journey.waitlist.store import EntryStore, generate_referral_code, normalize_email

logger = get_logger(__name__)

REFERRED_CODE_PREFIX = "REF-"


def referral_link(code: str) -> str:
    """Shareable landing page link for a referral code."""
    return f"{settings.app_url.rstrip('/')}/?ref={code}"


@dataclass
class ReferralResult:
    """Outcome of redeeming a referral code."""

    success: bool
    referrer_promoted_to_vip: bool = False
    referrer_id: int | None = None


class ReferralLedger:
    """Records referrals inside the caller's transaction."""

    def __init__(self, session: Session):
        self.session = session
        self.entries = EntryStore(session)

    def verify_code(self, code: str) -> WaitlistEntry | None:
        """Get the referrer owning a code, or None if unknown."""
        if not code or not code.strip():
            return None
        return self.entries.get_by_referral_code(code)

    def _unique_referred_code(self) -> str:
        code = REFERRED_CODE_PREFIX + generate_referral_code(10)
        attempts = 0
        while attempts < 10 and (
            self.session.query(ReferralRecord).filter(ReferralRecord.referral_code == code).first()
        ):
            code = REFERRED_CODE_PREFIX + generate_referral_code(10)
            attempts += 1
        return code

    def record_referral(self, code: str, new_email: str, new_entry_id: int) -> ReferralResult:
        """Credit the owner of ``code`` for the signup of ``new_email``.

        Redeeming the same code twice for one email is a no-op.

        Raises:
            InvalidReferralCodeError: If no entry owns the code
        """
        referrer = self.verify_code(code)
        if referrer is None:
            raise InvalidReferralCodeError(code)

        new_email = normalize_email(new_email)
        if referrer.id == new_entry_id or referrer.email == new_email:
            logger.info("referral_self_ignored", referrer_id=referrer.id)
            return ReferralResult(success=False, referrer_id=referrer.id)

        existing = (
            self.session.query(ReferralRecord)
            .filter(
                ReferralRecord.referrer_id == referrer.id,
                ReferralRecord.referred_email == new_email,
            )
            .first()
        )
        if existing:
            logger.info("referral_duplicate", referrer_id=referrer.id, referred_email=new_email)
            return ReferralResult(success=False, referrer_id=referrer.id)

        now = utcnow()
        record = ReferralRecord(
            referrer_id=referrer.id,
            referred_id=new_entry_id,
            referred_email=new_email,
            referral_code=self._unique_referred_code(),
            joined_at=now,
        )
        self.session.add(record)
        self.session.flush()

        promoted = self.entries.increment_referrals_and_maybe_promote(referrer.id)

        logger.info(
            "referral_recorded",
            referrer_id=referrer.id,
            referred_id=new_entry_id,
            promoted_to_vip=promoted,
        )
        return ReferralResult(
            success=True,
            referrer_promoted_to_vip=promoted,
            referrer_id=referrer.id,
        )


class ReferralService:
    """Transactional entry points around the ledger."""

    def __init__(self, database: Database | None = None):
        self.db = database or db

    def verify_code(self, code: str) -> WaitlistEntry | None:
        with self.db.session() as session:
            return ReferralLedger(session).verify_code(code)

    def apply_referral(self, code: str, new_email: str, new_entry_id: int) -> ReferralResult:
        """Redeem a code in its own transaction.

        Raises:
            InvalidReferralCodeError: If no entry owns the code
        """
        try:
            with self.db.session() as session:
                return ReferralLedger(session).record_referral(code, new_email, new_entry_id)
        except IntegrityError:
            # A concurrent redemption for the same email won
            logger.info("referral_duplicate_race", code=code, referred_email=new_email)
            return ReferralResult(success=False)

    def get_referrer_info(self, code: str) -> dict[str, Any] | None:
        """Public details of a code's owner for the "invited by" banner."""
        referrer = self.verify_code(code)
        if referrer is None:
            return None
        return {
            "referrer_name": referrer.first_name,
            "referrer_queue_position": referrer.queue_position,
        }

    def get_referral_stats(self, email: str) -> dict[str, Any] | None:
        """Referral statistics for an entry.

        Returns:
            Dict with code, link, VIP status and referred emails, or None
        """
        with self.db.session() as session:
            entries = EntryStore(session)
            entry = entries.get_by_email(email)
            if entry is None:
                return None

            code = entries.mint_referral_code(entry.id)
            referrals = (
                session.query(ReferralRecord)
                .filter(ReferralRecord.referrer_id == entry.id)
                .order_by(ReferralRecord.created_at)
                .all()
            )

            return {
                "email": entry.email,
                "referral_code": code,
                "link": referral_link(code),
                "is_vip": bool(entry.is_vip),
                "successful_referrals": entry.successful_referrals or 0,
                "referrals": [
                    {"referred_email": r.referred_email, "joined_at": r.joined_at}
                    for r in referrals
                ],
            }
