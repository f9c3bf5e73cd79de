"""Email templates.

Every renderer is a pure function of its arguments and returns a
``RenderedEmail`` with subject, HTML and plain-text bodies.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

from journey.sequence.models import EmailType

BRAND = "The Ultimate Journey"


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def _passenger_name(first_name: str | None) -> str:
    return first_name.strip() if first_name and first_name.strip() else "Passenger"


def _layout(title: str, paragraphs: list[str]) -> str:
    body = "\n".join(
        f'<p style="font-size: 16px; line-height: 1.6; margin-bottom: 20px;">{p}</p>'
        for p in paragraphs
    )
    return f"""
    <div style="font-family: Arial, sans-serif; background: linear-gradient(135deg, #0A0A0A 0%, #1a1a2e 100%); color: #fff; padding: 40px 20px;">
        <div style="max-width: 600px; margin: 0 auto; background: rgba(0, 217, 255, 0.1); border: 1px solid rgba(0, 217, 255, 0.3); border-radius: 12px; padding: 40px;">
            <h1 style="color: #00D9FF; margin-bottom: 20px;">{title}</h1>
            {body}
            <p style="font-size: 14px; color: #00D9FF; margin-top: 30px;">{BRAND} Team</p>
        </div>
    </div>
    """


def _text(title: str, paragraphs: list[str]) -> str:
    return "\n\n".join([title, *paragraphs, f"{BRAND} Team"])


# ==================== SIGNUP EMAILS ====================


def render_boarding_pass(first_name: str | None, queue_position: int) -> RenderedEmail:
    """Confirmation for visitors who joined without paying."""
    name = _passenger_name(first_name)
    paragraphs = [
        "Hello {name},",
        f"Your boarding pass is confirmed. You are passenger #{queue_position} on the waitlist.",
        "Keep an eye on your inbox: over the next two weeks we'll send exclusive content and early-access offers.",
    ]
    return RenderedEmail(
        subject="🎫 Your Boarding Pass - You're on the Waitlist!",
        html=_layout("Your Boarding Pass", [p.format(name=escape(name)) for p in paragraphs]),
        text=_text("Your Boarding Pass", [p.format(name=name) for p in paragraphs]),
    )


def render_payment_receipt(
    first_name: str | None,
    amount_cents: int,
    payment_id: str,
    queue_position: int,
) -> RenderedEmail:
    """Receipt plus boarding pass for paid signups."""
    name = _passenger_name(first_name)
    amount = f"${amount_cents / 100:.2f}"
    paragraphs = [
        "Hello {name},",
        f"Payment confirmed: {amount} (reference {{payment_id}}).",
        f"Your boarding pass is ready. You are passenger #{queue_position} on the waitlist.",
    ]
    return RenderedEmail(
        subject="✈️ Payment Confirmed - Your Boarding Pass is Ready",
        html=_layout(
            "Payment Confirmed",
            [p.format(name=escape(name), payment_id=escape(payment_id)) for p in paragraphs],
        ),
        text=_text(
            "Payment Confirmed",
            [p.format(name=name, payment_id=payment_id) for p in paragraphs],
        ),
    )


def render_internal_notification(
    user_email: str,
    first_name: str | None,
    tier: str,
    amount_cents: int | None = None,
    signed_up_at: datetime | None = None,
) -> RenderedEmail:
    """Signup notice for the team."""
    tier_label = f"Paid (${(amount_cents or 1) / 100:.2f})" if tier == "paid" else "Free"
    when = (signed_up_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M UTC")
    display = first_name or user_email

    html = f"""
    <h2>New Signup on {BRAND}</h2>
    <table style="border-collapse:collapse; font-family: monospace;">
      <tr><td style="padding:4px 12px 4px 0; color:#999;">Email</td><td><strong>{escape(user_email)}</strong></td></tr>
      <tr><td style="padding:4px 12px 4px 0; color:#999;">Name</td><td>{escape(first_name or "-")}</td></tr>
      <tr><td style="padding:4px 12px 4px 0; color:#999;">Tier</td><td>{tier_label}</td></tr>
      <tr><td style="padding:4px 12px 4px 0; color:#999;">Date</td><td>{when}</td></tr>
    </table>
    """
    return RenderedEmail(
        subject=f"[New Signup] {display} | {tier_label} | {when}",
        html=html,
        text=f"New Signup: {user_email} | {tier_label} | {when}",
    )


# ==================== DRIP SEQUENCE ====================

_SEQUENCE_COPY: dict[EmailType, tuple[str, list[str]]] = {
    EmailType.WELCOME: (
        "Welcome to The Ultimate Journey ✈️",
        [
            "Hello {name},",
            "You're now on the waitlist as passenger #{position}. Get ready for an extraordinary experience.",
            "Over the next two weeks, we'll be sharing exclusive content, insider tips, and special offers just for our early supporters.",
        ],
    ),
    EmailType.CONTENT_PREVIEW: (
        "Exclusive Content Preview 🎁",
        [
            "Hello {name},",
            "As a valued member of our waitlist, you get exclusive access to behind-the-scenes content and insider tips.",
            "This week, we're sharing insights on how to make the most of The Ultimate Journey.",
        ],
    ),
    EmailType.BOARDING_REMINDER: (
        "Your Boarding Pass is Ready ✈️",
        [
            "Hello {name},",
            "We're getting closer to departure! Your boarding pass is ready, and we're preparing for launch.",
            "Passenger #{position}, you're in the queue. Stay tuned for exciting announcements coming your way.",
        ],
    ),
    EmailType.EXCLUSIVE_OFFER: (
        "Exclusive Offer for Early Adopters 🎉",
        [
            "Hello {name},",
            "As one of our earliest supporters, you're eligible for a special exclusive offer.",
            "This is your chance to get early access to The Ultimate Journey with special pricing and exclusive features.",
        ],
    ),
}


def render_sequence_email(
    email_type: EmailType,
    subject: str,
    first_name: str | None,
    queue_position: int,
) -> RenderedEmail:
    """Render one drip email for a subscriber."""
    title, paragraphs = _SEQUENCE_COPY[email_type]
    name = _passenger_name(first_name)
    return RenderedEmail(
        subject=subject,
        html=_layout(title, [p.format(name=escape(name), position=queue_position) for p in paragraphs]),
        text=_text(title, [p.format(name=name, position=queue_position) for p in paragraphs]),
    )
