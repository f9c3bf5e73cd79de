"""Referral module.

Every entry gets a code to share. Each distinct signup with that code
counts as a successful referral; three of them make the referrer a VIP.
"""

from journey.referral.ledger import ReferralLedger, ReferralResult, ReferralService, referral_link
from journey.referral.models import ReferralRecord

__all__ = ["ReferralLedger", "ReferralRecord", "ReferralResult", "ReferralService", "referral_link"]
