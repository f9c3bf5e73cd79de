"""Tests for subscriber preferences."""

import pytest

from journey.exceptions import EntryNotFoundError
from journey.waitlist.models import EmailFrequency, SubscriberPreferences
from journey.waitlist.preferences import PreferencesService

from conftest import make_entry


@pytest.fixture
def service(database):
    make_entry(database, "ada@mail.com")
    return PreferencesService(database)


def _rows(database) -> int:
    with database.session() as session:
        return session.query(SubscriberPreferences).count()


def test_defaults_without_row(service, database):
    prefs = service.get_preferences("ADA@mail.com")

    assert prefs.email == "ada@mail.com"
    assert prefs.email_frequency == EmailFrequency.WEEKLY
    assert prefs.receive_promotional is True
    assert prefs.receive_product_updates is True
    assert prefs.unsubscribed is False
    assert _rows(database) == 0


def test_partial_update_keeps_other_fields(service, database):
    service.update_preferences("ada@mail.com", email_frequency=EmailFrequency.DAILY)
    prefs = service.update_preferences("ada@mail.com", receive_promotional=False)

    assert prefs.email_frequency == EmailFrequency.DAILY
    assert prefs.receive_promotional is False
    assert prefs.receive_product_updates is True
    assert _rows(database) == 1


def test_unsubscribe_and_resubscribe(service):
    assert service.unsubscribe("ada@mail.com").unsubscribed is True
    assert service.get_preferences("ada@mail.com").unsubscribed is True
    assert service.resubscribe("ada@mail.com").unsubscribed is False


def test_unknown_email(service):
    with pytest.raises(EntryNotFoundError):
        service.get_preferences("nobody@mail.com")
    with pytest.raises(EntryNotFoundError):
        service.unsubscribe("nobody@mail.com")
