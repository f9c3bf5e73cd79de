"""
Test configuration and fixtures for the Journey waitlist.

Every test gets its own SQLite file database. Stripe and SendGrid are
replaced with mocks.
"""

import os
import tempfile

# Must happen before journey.settings is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{tempfile.mktemp(suffix='.db')}"
for key in ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "SENDGRID_API_KEY", "INTERNAL_NOTIFICATION_EMAILS"):
    os.environ.pop(key, None)

from datetime import datetime
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

from journey.email.service import EmailService
from journey.payments.checkout import CheckoutOrchestrator
from journey.payments.stripe_service import CheckoutSessionData, StripeCheckoutGateway
from journey.referral.ledger import ReferralService
from journey.storage.db import Database
from journey.waitlist.models import PaymentStatus
from journey.waitlist.store import EntryStore


@pytest.fixture
def database(tmp_path) -> Generator[Database, None, None]:
    """Fresh database with all tables and the queue counter."""
    database = Database(f"sqlite:///{tmp_path / 'journey.db'}")
    database.create_tables()
    yield database
    database.engine.dispose()


@pytest.fixture
def emails() -> AsyncMock:
    """Email service mock; every send succeeds."""
    service = AsyncMock(spec=EmailService)
    service.send_rendered.return_value = True
    service.send_boarding_pass.return_value = True
    service.send_payment_receipt.return_value = True
    service.send_internal_notification.return_value = 1
    return service


@pytest.fixture
def gateway() -> MagicMock:
    """Stripe gateway mock with a paid session for ada@mail.com."""
    gateway = MagicMock(spec=StripeCheckoutGateway)
    gateway.webhook_secret = "whsec_test"
    gateway.create_session.return_value = ("cs_test_1", "https://checkout.stripe.com/c/pay/cs_test_1")
    gateway.retrieve_session.return_value = paid_session()
    return gateway


@pytest.fixture
def orchestrator(database, gateway, emails) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        database=database,
        gateway=gateway,
        emails=emails,
        referrals=ReferralService(database),
    )


def paid_session(
    email: str = "ada@mail.com",
    first_name: str = "Ada",
    referral_code: str = "",
    session_id: str = "cs_test_1",
    payment_status: str = "paid",
) -> CheckoutSessionData:
    return CheckoutSessionData(
        id=session_id,
        payment_status=payment_status,
        metadata={
            "email": email,
            "first_name": first_name,
            "queue_position": "1",
            "referral_code": referral_code,
        },
        payment_intent="pi_test_1",
        customer="cus_test_1",
        amount_total=1,
    )


def make_entry(
    database: Database,
    email: str,
    first_name: str | None = None,
    created_at: datetime | None = None,
    payment_status: PaymentStatus = PaymentStatus.SKIPPED,
):
    """Insert an entry with a referral code and return (id, code, position)."""
    with database.session() as session:
        store = EntryStore(session)
        entry = store.create_entry(email, first_name=first_name, payment_status=payment_status)
        code = store.mint_referral_code(entry.id)
        if created_at is not None:
            entry.created_at = created_at
        return entry.id, code, entry.queue_position
