"""Referral database models."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from journey.storage.models import Base, utcnow


class ReferralRecord(Base):
    """One redeemed referral.

    Links the referrer to the person who joined with their code.
    At most one record per (referrer, referred email).
    """
    __tablename__ = "referral_records"

    id = Column(Integer, primary_key=True)
    referrer_id = Column(Integer, ForeignKey("waitlist_entries.id"), nullable=False, index=True)
    referred_id = Column(Integer, ForeignKey("waitlist_entries.id"), nullable=True)  # Set once they join
    referred_email = Column(String(320), nullable=False)
    referral_code = Column(String(32), unique=True, nullable=False)  # Issued to the referred entry

    # Status
    reward_claimed = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    referrer = relationship("WaitlistEntry", foreign_keys=[referrer_id])
    referred = relationship("WaitlistEntry", foreign_keys=[referred_id])

    __table_args__ = (
        UniqueConstraint("referrer_id", "referred_email", name="uq_referral_referrer_email"),
    )

    def __repr__(self):
        return f"<ReferralRecord(referrer={self.referrer_id}, referred={self.referred_email})>"
