"""Checkout orchestrator.

Turns a visitor submission into a waitlist entry, either through a paid
Stripe checkout or the free skip-payment path. The entry is created in one
transaction; referral crediting and emails run afterwards as best-effort
post-commit actions.
"""

from typing import Any, Optional

from journey.email.service import EmailService, email_service
from journey.exceptions import (
    DuplicateEmailError,
    EntryNotFoundError,
    InvalidReferralCodeError,
    MissingMetadataError,
    PaymentNotCompletedError,
)
from journey.logging_config import get_logger
from journey.payments.post_commit import PostCommitActions
from journey.payments.stripe_service import StripeCheckoutGateway
from journey.payments.webhook_events import is_event_processed, mark_event_processed
from journey.referral.ledger import ReferralService
from journey.settings import settings
from journey.storage.db import Database, db
from journey.storage.models import utcnow
from journey.waitlist.models import PaymentStatus
from journey.waitlist.store import EntryStore, SignupResult, normalize_email

logger = get_logger(__name__)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


class CheckoutOrchestrator:
    """Signup flows for the waitlist."""

    def __init__(
        self,
        database: Optional[Database] = None,
        gateway: Optional[StripeCheckoutGateway] = None,
        emails: Optional[EmailService] = None,
        referrals: Optional[ReferralService] = None,
    ):
        self.db = database or db
        self.gateway = gateway or StripeCheckoutGateway()
        self.emails = emails or email_service
        self.referrals = referrals or ReferralService(self.db)

    # ==================== READ SIDE ====================

    def get_total_count(self) -> int:
        """Number of people on the waitlist (highest queue position)."""
        with self.db.session() as session:
            return EntryStore(session).total_count()

    def get_entry(self, email: str) -> SignupResult:
        """Get an entry's public state.

        Raises:
            EntryNotFoundError: If the email is not on the waitlist
        """
        with self.db.session() as session:
            entry = EntryStore(session).get_by_email(email)
            if entry is None:
                raise EntryNotFoundError(f"No waitlist entry for {normalize_email(email)}")
            return SignupResult.from_entry(entry)

    # ==================== PAID PATH ====================

    def create_checkout(
        self,
        email: str,
        first_name: Optional[str] = None,
        referral_code: Optional[str] = None,
    ) -> str:
        """Open a Stripe checkout session for the waitlist fee.

        The queue position in the metadata is an estimate for display; the
        real position is reserved when the payment is confirmed.

        Returns:
            Checkout URL to redirect the visitor to

        Raises:
            CheckoutCreationError: If Stripe could not create a session
        """
        email = normalize_email(email)
        with self.db.session() as session:
            estimated_position = EntryStore(session).peek_queue_position()

        base_url = settings.app_url.rstrip("/")
        _, url = self.gateway.create_session(
            customer_email=email,
            metadata={
                "email": email,
                "first_name": first_name or "",
                "queue_position": str(estimated_position),
                "referral_code": (referral_code or "").strip().upper(),
            },
            success_url=f"{base_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/payment-cancel",
        )
        return url

    async def confirm_payment(self, session_id: str) -> SignupResult:
        """Finalize a paid checkout into a completed entry.

        Safe to call more than once for the same session: the client callback
        and the webhook both land here.

        Raises:
            PaymentConfirmationError: If Stripe could not be queried
            MissingMetadataError: If the session carries no email
            PaymentNotCompletedError: If the session is not paid
        """
        data = self.gateway.retrieve_session(session_id)

        email = data.metadata.get("email")
        if not email:
            raise MissingMetadataError(f"Checkout session {session_id} has no email metadata")
        if not data.is_paid:
            logger.warning(
                "payment_not_completed",
                session_id=session_id,
                payment_status=data.payment_status,
            )
            raise PaymentNotCompletedError(session_id, data.payment_status)

        email = normalize_email(email)
        first_name = data.metadata.get("first_name") or None
        referral_code = data.metadata.get("referral_code") or None

        result, entry_id = self._finalize_signup(
            email,
            first_name,
            PaymentStatus.COMPLETED,
            stripe_payment_intent_id=data.payment_intent,
            stripe_customer_id=data.customer,
        )
        if entry_id is None:
            return result

        amount = data.amount_total if data.amount_total is not None else settings.checkout_amount_cents
        actions = PostCommitActions("payment_confirmed", email=email, session_id=session_id)
        if referral_code:
            actions.add("apply_referral", self._apply_referral, referral_code, email, entry_id)
        actions.add(
            "payment_receipt",
            self.emails.send_payment_receipt,
            email,
            first_name,
            amount,
            data.payment_intent or session_id,
            result.queue_position,
        )
        actions.add(
            "internal_notification",
            self.emails.send_internal_notification,
            email,
            first_name,
            "paid",
            amount,
        )
        await actions.run()

        logger.info(
            "payment_confirmed",
            email=email,
            session_id=session_id,
            queue_position=result.queue_position,
        )
        return result

    # ==================== FREE PATH ====================

    async def join_without_payment(
        self,
        email: str,
        first_name: Optional[str] = None,
        referral_code: Optional[str] = None,
    ) -> SignupResult:
        """Join the waitlist without paying.

        Joining twice with the same email returns the existing entry.
        """
        email = normalize_email(email)
        result, entry_id = self._finalize_signup(email, first_name, PaymentStatus.SKIPPED)
        if entry_id is None:
            return result

        actions = PostCommitActions("joined_without_payment", email=email)
        if referral_code:
            actions.add("apply_referral", self._apply_referral, referral_code, email, entry_id)
        actions.add(
            "boarding_pass",
            self.emails.send_boarding_pass,
            email,
            first_name,
            result.queue_position,
        )
        actions.add(
            "internal_notification",
            self.emails.send_internal_notification,
            email,
            first_name,
            "free",
        )
        await actions.run()

        logger.info("joined_without_payment", email=email, queue_position=result.queue_position)
        return result

    # ==================== WEBHOOKS ====================

    async def handle_webhook_event(self, event: Any) -> dict[str, Any]:
        """Process a verified Stripe event.

        Duplicate deliveries are dropped. The event is recorded only after it
        was handled, so a failure lets Stripe retry it.
        """
        event_id = event.get("id", "")
        event_type = event.get("type", "")

        if event_type != CHECKOUT_COMPLETED_EVENT:
            logger.info("stripe_webhook_unhandled", event_type=event_type)
            return {"received": True}

        if is_event_processed(self.db, event_id):
            logger.info("stripe_webhook_duplicate", event_id=event_id)
            return {"received": True, "duplicate": True}

        session_data = event["data"]["object"]
        if session_data.get("payment_status") != "paid":
            logger.info(
                "stripe_checkout_not_paid",
                session_id=session_data.get("id"),
                payment_status=session_data.get("payment_status"),
            )
            return {"received": True}

        await self.confirm_payment(session_data["id"])
        mark_event_processed(self.db, event_id, event_type)
        logger.info("stripe_checkout_completed", session_id=session_data["id"])
        return {"received": True}

    # ==================== HELPERS ====================

    def _finalize_signup(
        self,
        email: str,
        first_name: Optional[str],
        payment_status: PaymentStatus,
        stripe_payment_intent_id: Optional[str] = None,
        stripe_customer_id: Optional[str] = None,
    ) -> tuple[SignupResult, Optional[int]]:
        """Create the entry, or return the existing one.

        Returns:
            (result, entry id) where the id is None when nothing new happened
            and post-commit actions must not run
        """
        try:
            with self.db.session() as session:
                store = EntryStore(session)
                existing = store.get_by_email(email)

                if existing is not None:
                    upgraded = (
                        payment_status == PaymentStatus.COMPLETED
                        and existing.payment_status == PaymentStatus.PENDING
                    )
                    if upgraded:
                        store.mark_completed(email, stripe_payment_intent_id, stripe_customer_id)
                    store.mint_referral_code(existing.id)
                    logger.info("signup_existing_entry", email=email, upgraded=upgraded)
                    return SignupResult.from_entry(existing), existing.id if upgraded else None

                entry = store.create_entry(
                    email,
                    first_name=first_name,
                    payment_status=payment_status,
                    stripe_payment_intent_id=stripe_payment_intent_id,
                    stripe_customer_id=stripe_customer_id,
                    boarding_pass_sent_at=utcnow(),
                )
                store.mint_referral_code(entry.id)
                return SignupResult.from_entry(entry), entry.id
        except DuplicateEmailError:
            # A concurrent signup for the same email committed first
            logger.info("signup_duplicate_race", email=email)
            return self.get_entry(email), None

    async def _apply_referral(self, code: str, email: str, entry_id: int) -> None:
        try:
            result = self.referrals.apply_referral(code, email, entry_id)
        except InvalidReferralCodeError:
            logger.warning("referral_code_invalid", code=code, email=email)
            return

        if result.referrer_promoted_to_vip:
            logger.info("referrer_promoted_to_vip", referrer_id=result.referrer_id)

