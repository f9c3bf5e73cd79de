"""Tests for referral redemption and VIP promotion."""

import pytest

from journey.exceptions import InvalidReferralCodeError
from journey.referral.ledger import REFERRED_CODE_PREFIX, ReferralLedger, ReferralService, referral_link
from journey.referral.models import ReferralRecord
from journey.waitlist.store import EntryStore

from conftest import make_entry


def _referrals_of(database, entry_id: int) -> tuple[int, bool]:
    with database.session() as session:
        entry = EntryStore(session).get_by_id(entry_id)
        return entry.successful_referrals, entry.is_vip


def test_verify_code_is_case_insensitive(database):
    entry_id, code, _ = make_entry(database, "ada@mail.com", first_name="Ada")
    service = ReferralService(database)

    assert service.verify_code(f"  {code.lower()} ").id == entry_id
    assert service.verify_code("NOPE2345") is None
    assert service.verify_code("") is None


def test_record_referral_credits_referrer(database):
    ada_id, code, _ = make_entry(database, "ada@mail.com")
    bob_id, _, _ = make_entry(database, "bob@mail.com")

    result = ReferralService(database).apply_referral(code, "bob@mail.com", bob_id)

    assert result.success is True
    assert result.referrer_id == ada_id
    assert result.referrer_promoted_to_vip is False
    assert _referrals_of(database, ada_id) == (1, False)

    with database.session() as session:
        record = session.query(ReferralRecord).one()
        assert record.referred_id == bob_id
        assert record.referred_email == "bob@mail.com"
        assert record.referral_code.startswith(REFERRED_CODE_PREFIX)
        assert record.joined_at is not None


def test_second_redemption_for_same_email_is_noop(database):
    ada_id, code, _ = make_entry(database, "ada@mail.com")
    bob_id, _, _ = make_entry(database, "bob@mail.com")
    service = ReferralService(database)

    assert service.apply_referral(code, "bob@mail.com", bob_id).success is True
    second = service.apply_referral(code, "Bob@Mail.com", bob_id)

    assert second.success is False
    assert _referrals_of(database, ada_id) == (1, False)


def test_unknown_code_raises(database):
    bob_id, _, _ = make_entry(database, "bob@mail.com")
    with database.session() as session:
        with pytest.raises(InvalidReferralCodeError):
            ReferralLedger(session).record_referral("ZZZZZZZZ", "bob@mail.com", bob_id)


def test_self_referral_is_ignored(database):
    ada_id, code, _ = make_entry(database, "ada@mail.com")

    result = ReferralService(database).apply_referral(code, "ada@mail.com", ada_id)

    assert result.success is False
    assert _referrals_of(database, ada_id) == (0, False)


def test_referrer_becomes_vip_on_third_referral(database):
    a_id, code, _ = make_entry(database, "a@mail.com")
    service = ReferralService(database)

    b_id, _, _ = make_entry(database, "b@mail.com")
    service.apply_referral(code, "b@mail.com", b_id)
    assert _referrals_of(database, a_id) == (1, False)

    c_id, _, _ = make_entry(database, "c@mail.com")
    assert service.apply_referral(code, "c@mail.com", c_id).referrer_promoted_to_vip is False

    d_id, _, _ = make_entry(database, "d@mail.com")
    assert service.apply_referral(code, "d@mail.com", d_id).referrer_promoted_to_vip is True
    assert _referrals_of(database, a_id) == (3, True)

    e_id, _, _ = make_entry(database, "e@mail.com")
    assert service.apply_referral(code, "e@mail.com", e_id).referrer_promoted_to_vip is False
    assert _referrals_of(database, a_id) == (4, True)


def test_referrer_info(database):
    _, code, position = make_entry(database, "ada@mail.com", first_name="Ada")
    service = ReferralService(database)

    assert service.get_referrer_info(code) == {
        "referrer_name": "Ada",
        "referrer_queue_position": position,
    }
    assert service.get_referrer_info("NOPE2345") is None


def test_referral_stats(database):
    ada_id, code, _ = make_entry(database, "ada@mail.com")
    bob_id, _, _ = make_entry(database, "bob@mail.com")
    service = ReferralService(database)
    service.apply_referral(code, "bob@mail.com", bob_id)

    stats = service.get_referral_stats("ADA@mail.com")

    assert stats["referral_code"] == code
    assert stats["link"] == referral_link(code)
    assert stats["link"].endswith(f"?ref={code}")
    assert stats["successful_referrals"] == 1
    assert stats["is_vip"] is False
    assert [r["referred_email"] for r in stats["referrals"]] == ["bob@mail.com"]
    assert service.get_referral_stats("nobody@mail.com") is None
