"""Initial waitlist schema

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-16

Creates the waitlist, referral, drip sequence, preferences and webhook
tables and seeds the queue counter.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all initial tables."""

    # Waitlist entries
    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("queue_position", sa.Integer(), nullable=False),
        sa.Column(
            "payment_status",
            sa.Enum("PENDING", "COMPLETED", "FAILED", "SKIPPED", name="paymentstatus"),
            nullable=False,
        ),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=True),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("boarding_pass_sent_at", sa.DateTime(), nullable=True),
        sa.Column("referral_code", sa.String(32), nullable=True),
        sa.Column("is_vip", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("successful_referrals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("queue_position"),
    )
    op.create_index("ix_waitlist_entries_email", "waitlist_entries", ["email"], unique=True)
    op.create_index("ix_waitlist_entries_referral_code", "waitlist_entries", ["referral_code"], unique=True)
    op.create_index("ix_waitlist_entries_created_at", "waitlist_entries", ["created_at"], unique=False)

    # Queue position sequence
    op.create_table(
        "queue_counters",
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )
    op.execute("INSERT INTO queue_counters (name, value) VALUES ('waitlist', 0)")

    # Referral records
    op.create_table(
        "referral_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("referrer_id", sa.Integer(), nullable=False),
        sa.Column("referred_id", sa.Integer(), nullable=True),
        sa.Column("referred_email", sa.String(320), nullable=False),
        sa.Column("referral_code", sa.String(32), nullable=False),
        sa.Column("reward_claimed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["referrer_id"], ["waitlist_entries.id"]),
        sa.ForeignKeyConstraint(["referred_id"], ["waitlist_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("referral_code"),
        sa.UniqueConstraint("referrer_id", "referred_email", name="uq_referral_referrer_email"),
    )
    op.create_index("ix_referral_records_referrer_id", "referral_records", ["referrer_id"], unique=False)

    # Drip sequence tracking
    op.create_table(
        "email_sequence_tracking",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("waitlist_entry_id", sa.Integer(), nullable=False),
        sa.Column("sequence_day", sa.Integer(), nullable=False),
        sa.Column(
            "email_type",
            sa.Enum("WELCOME", "CONTENT_PREVIEW", "BOARDING_REMINDER", "EXCLUSIVE_OFFER", name="emailtype"),
            nullable=False,
        ),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("opened_at", sa.DateTime(), nullable=True),
        sa.Column("clicked_at", sa.DateTime(), nullable=True),
        sa.Column("bounced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["waitlist_entry_id"], ["waitlist_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("waitlist_entry_id", "email_type", name="uq_sequence_entry_type"),
    )
    op.create_index(
        "ix_email_sequence_tracking_waitlist_entry_id",
        "email_sequence_tracking",
        ["waitlist_entry_id"],
        unique=False,
    )

    # Subscriber preferences
    op.create_table(
        "subscriber_preferences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("waitlist_entry_id", sa.Integer(), nullable=False),
        sa.Column(
            "email_frequency",
            sa.Enum("DAILY", "WEEKLY", "BIWEEKLY", name="emailfrequency"),
            nullable=False,
        ),
        sa.Column("receive_promotional", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("receive_product_updates", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("unsubscribed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["waitlist_entry_id"], ["waitlist_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("waitlist_entry_id"),
    )

    # Webhook idempotency
    op.create_table(
        "processed_webhook_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_processed_webhook_events_event_id",
        "processed_webhook_events",
        ["event_id"],
        unique=True,
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_processed_webhook_events_event_id", table_name="processed_webhook_events")
    op.drop_table("processed_webhook_events")
    op.drop_table("subscriber_preferences")
    op.drop_index("ix_email_sequence_tracking_waitlist_entry_id", table_name="email_sequence_tracking")
    op.drop_table("email_sequence_tracking")
    op.drop_index("ix_referral_records_referrer_id", table_name="referral_records")
    op.drop_table("referral_records")
    op.drop_table("queue_counters")
    op.drop_index("ix_waitlist_entries_created_at", table_name="waitlist_entries")
    op.drop_index("ix_waitlist_entries_referral_code", table_name="waitlist_entries")
    op.drop_index("ix_waitlist_entries_email", table_name="waitlist_entries")
    op.drop_table("waitlist_entries")

    sa.Enum(name="emailfrequency").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="emailtype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="paymentstatus").drop(op.get_bind(), checkfirst=True)
