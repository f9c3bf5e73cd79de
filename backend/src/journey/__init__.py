"""Journey waitlist: queue positions, referrals and a drip campaign."""

__version__ = "1.0.0"
