"""Tests for the entry store: queue positions, referral codes, VIP promotion."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from journey.exceptions import DuplicateEmailError, EntryNotFoundError
from journey.waitlist.models import PaymentStatus, WaitlistEntry
from journey.waitlist.store import (
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_LENGTH,
    EntryStore,
    generate_referral_code,
)

from conftest import make_entry


def test_positions_are_sequential(database):
    positions = [make_entry(database, f"user{i}@mail.com")[2] for i in range(5)]
    assert positions == [1, 2, 3, 4, 5]


def test_email_is_normalized(database):
    make_entry(database, "  Ada@Mail.COM ")
    with database.session() as session:
        entry = EntryStore(session).get_by_email("ada@mail.com")
        assert entry is not None
        assert entry.email == "ada@mail.com"


def test_duplicate_email_raises_and_keeps_positions_gapless(database):
    make_entry(database, "ada@mail.com")

    with pytest.raises(DuplicateEmailError):
        make_entry(database, "ADA@mail.com")

    assert make_entry(database, "bob@mail.com")[2] == 2
    with database.session() as session:
        assert session.query(WaitlistEntry).count() == 2


def test_rolled_back_insert_returns_its_position(database):
    with pytest.raises(RuntimeError):
        with database.session() as session:
            EntryStore(session).create_entry("ada@mail.com")
            raise RuntimeError("abort")

    assert make_entry(database, "bob@mail.com")[2] == 1


def test_concurrent_signups_get_distinct_gapless_positions(database):
    count = 12

    def signup(i: int) -> int:
        with database.session() as session:
            entry = EntryStore(session).create_entry(
                f"user{i}@mail.com", payment_status=PaymentStatus.SKIPPED
            )
            return entry.queue_position

    with ThreadPoolExecutor(max_workers=6) as pool:
        positions = list(pool.map(signup, range(count)))

    assert sorted(positions) == list(range(1, count + 1))


def test_total_count_is_highest_position(database):
    with database.session() as session:
        assert EntryStore(session).total_count() == 0
    make_entry(database, "ada@mail.com")
    make_entry(database, "bob@mail.com")
    with database.session() as session:
        store = EntryStore(session)
        assert store.total_count() == 2
        assert store.peek_queue_position() == 3


def test_generate_referral_code_format():
    code = generate_referral_code()
    assert len(code) == REFERRAL_CODE_LENGTH
    assert all(c in REFERRAL_CODE_ALPHABET for c in code)


def test_mint_referral_code_is_idempotent(database):
    entry_id, code, _ = make_entry(database, "ada@mail.com")
    with database.session() as session:
        store = EntryStore(session)
        assert store.mint_referral_code(entry_id) == code
        assert store.get_by_referral_code(code.lower()).id == entry_id


def test_mint_referral_code_unknown_entry(database):
    with database.session() as session:
        with pytest.raises(EntryNotFoundError):
            EntryStore(session).mint_referral_code(999)


def test_promotion_happens_once_at_third_referral(database):
    entry_id, _, _ = make_entry(database, "ada@mail.com")

    promotions = []
    for _ in range(4):
        with database.session() as session:
            promotions.append(EntryStore(session).increment_referrals_and_maybe_promote(entry_id))

    assert promotions == [False, False, True, False]
    with database.session() as session:
        entry = EntryStore(session).get_by_id(entry_id)
        assert entry.successful_referrals == 4
        assert entry.is_vip is True


def test_mark_completed_only_moves_pending(database):
    make_entry(database, "ada@mail.com", payment_status=PaymentStatus.PENDING)
    make_entry(database, "bob@mail.com", payment_status=PaymentStatus.SKIPPED)

    with database.session() as session:
        store = EntryStore(session)
        ada = store.mark_completed("ada@mail.com", "pi_1", "cus_1")
        bob = store.mark_completed("bob@mail.com", "pi_2", "cus_2")

        assert ada.payment_status == PaymentStatus.COMPLETED
        assert ada.stripe_payment_intent_id == "pi_1"
        assert ada.boarding_pass_sent_at is not None
        assert bob.payment_status == PaymentStatus.SKIPPED
        assert bob.stripe_payment_intent_id is None


def test_stats(database):
    make_entry(database, "ada@mail.com", payment_status=PaymentStatus.COMPLETED)
    make_entry(database, "bob@mail.com")
    make_entry(database, "cy@mail.com")

    with database.session() as session:
        stats = EntryStore(session).stats()

    assert stats == {"total": 3, "paid": 1, "skipped": 2, "pending": 0, "vip": 0}
