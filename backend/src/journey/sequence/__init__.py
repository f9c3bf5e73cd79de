"""Drip sequence module.

The scheduler lives in ``journey.sequence.scheduler``.
"""

from journey.sequence.models import EmailType, SequenceTracking

__all__ = ["EmailType", "SequenceTracking"]
