"""Exceptions raised by the waitlist services."""


class WaitlistError(Exception):
    """Base class for waitlist errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class DuplicateEmailError(WaitlistError):
    """Raised when an entry for the email already exists.

    Callers treat this as success and return the existing entry.
    """

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already on the waitlist: {email}")


class EntryNotFoundError(WaitlistError):
    """Raised when no waitlist entry matches the lookup."""


class InvalidReferralCodeError(WaitlistError):
    """Raised when a referral code does not belong to any entry."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Invalid referral code: {code}")


class CheckoutCreationError(WaitlistError):
    """Raised when the payment provider could not open a checkout session."""


class PaymentConfirmationError(WaitlistError):
    """Raised when a checkout session cannot be turned into an entry."""


class MissingMetadataError(PaymentConfirmationError):
    """Raised when a checkout session lacks the signup metadata."""


class PaymentNotCompletedError(PaymentConfirmationError):
    """Raised when a checkout session has not been paid."""

    def __init__(self, session_id: str, payment_status: str | None):
        self.session_id = session_id
        self.payment_status = payment_status
        super().__init__(
            f"Checkout session {session_id} is not paid",
            details=f"payment_status={payment_status}",
        )


class NotificationDeliveryError(WaitlistError):
    """Raised when the email provider rejects or cannot receive a message."""
