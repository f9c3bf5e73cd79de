"""FastAPI dependencies wiring services to the shared database."""

from fastapi import Depends

from journey.payments.checkout import CheckoutOrchestrator
from journey.referral.ledger import ReferralService
from journey.sequence.scheduler import DripScheduler
from journey.storage.db import Database, get_database
from journey.waitlist.preferences import PreferencesService


def get_orchestrator(database: Database = Depends(get_database)) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(database)


def get_referral_service(database: Database = Depends(get_database)) -> ReferralService:
    return ReferralService(database)


def get_preferences_service(database: Database = Depends(get_database)) -> PreferencesService:
    return PreferencesService(database)


def get_scheduler(database: Database = Depends(get_database)) -> DripScheduler:
    return DripScheduler(database)
