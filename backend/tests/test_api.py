"""Tests for the HTTP API."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from journey.api.deps import get_orchestrator
from journey.api.main import app
from journey.exceptions import CheckoutCreationError, PaymentConfirmationError
from journey.storage.db import get_database

from conftest import make_entry


@pytest.fixture
def client(database, orchestrator):
    """Client bound to the test database and the mocked providers.

    Not used as a context manager so the lifespan does not touch the
    default database.
    """
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_count(client, database):
    assert client.get("/api/v1/waitlist/count").json() == {"count": 0}
    make_entry(database, "ada@mail.com")
    assert client.get("/api/v1/waitlist/count").json() == {"count": 1}


def test_join_and_lookup(client):
    response = client.post("/api/v1/waitlist/join", json={"email": "ada@mail.com", "first_name": "Ada"})

    assert response.status_code == 200
    body = response.json()
    assert body["queue_position"] == 1
    assert body["referral_link"].endswith(f"?ref={body['referral_code']}")

    entry = client.get("/api/v1/waitlist/entry", params={"email": "ada@mail.com"})
    assert entry.status_code == 200
    assert entry.json()["referral_code"] == body["referral_code"]


def test_join_rejects_invalid_email(client):
    response = client.post("/api/v1/waitlist/join", json={"email": "not-an-email"})
    assert response.status_code == 422


def test_unknown_entry_is_404(client):
    response = client.get("/api/v1/waitlist/entry", params={"email": "nobody@mail.com"})
    assert response.status_code == 404


def test_checkout_returns_url(client):
    response = client.post("/api/v1/waitlist/checkout", json={"email": "ada@mail.com"})

    assert response.status_code == 200
    assert response.json() == {"checkout_url": "https://checkout.stripe.com/c/pay/cs_test_1"}


def test_checkout_failure_is_generic(client, gateway):
    gateway.create_session.side_effect = CheckoutCreationError("Stripe down", details="secret detail")

    response = client.post("/api/v1/waitlist/checkout", json={"email": "ada@mail.com"})

    assert response.status_code == 502
    assert "secret detail" not in response.text


def test_confirm(client):
    response = client.post("/api/v1/waitlist/confirm", json={"session_id": "cs_test_1"})

    assert response.status_code == 200
    assert response.json()["email"] == "ada@mail.com"


def test_confirm_failure(client, gateway):
    gateway.retrieve_session.side_effect = PaymentConfirmationError("Stripe down")

    response = client.post("/api/v1/waitlist/confirm", json={"session_id": "cs_test_1"})

    assert response.status_code == 400


def test_referral_verify(client, database):
    _, code, position = make_entry(database, "ada@mail.com", first_name="Ada")

    valid = client.get(f"/api/v1/referral/verify/{code.lower()}").json()
    invalid = client.get("/api/v1/referral/verify/NOPE2345").json()

    assert valid == {"valid": True, "referrer_name": "Ada", "referrer_queue_position": position}
    assert invalid["valid"] is False


def test_referral_stats(client, database):
    make_entry(database, "ada@mail.com")

    response = client.get("/api/v1/referral/stats", params={"email": "ada@mail.com"})

    assert response.status_code == 200
    assert response.json()["successful_referrals"] == 0
    assert client.get("/api/v1/referral/stats", params={"email": "nobody@mail.com"}).status_code == 404


def test_preferences_flow(client, database):
    make_entry(database, "ada@mail.com")

    defaults = client.get("/api/v1/preferences", params={"email": "ada@mail.com"}).json()
    assert defaults["email_frequency"] == "weekly"

    updated = client.put(
        "/api/v1/preferences",
        json={"email": "ada@mail.com", "email_frequency": "biweekly", "receive_promotional": False},
    ).json()
    assert updated["email_frequency"] == "biweekly"
    assert updated["receive_promotional"] is False
    assert updated["receive_product_updates"] is True

    unsubscribed = client.post("/api/v1/preferences/unsubscribe", json={"email": "ada@mail.com"}).json()
    assert unsubscribed["unsubscribed"] is True


def test_preferences_unknown_email(client):
    response = client.get("/api/v1/preferences", params={"email": "nobody@mail.com"})
    assert response.status_code == 404


def test_sequence_status(client, database):
    make_entry(database, "ada@mail.com")

    response = client.get("/api/v1/sequence/status", params={"email": "ada@mail.com"})

    assert response.status_code == 200
    assert response.json() == {"email": "ada@mail.com", "emails": []}


def test_webhook_requires_configuration(client, gateway):
    gateway.webhook_secret = None

    response = client.post("/api/v1/webhooks/stripe", content=b"{}")

    assert response.status_code == 503


def test_webhook_rejects_bad_signature(client, gateway):
    gateway.verify_webhook_signature.side_effect = ValueError("Invalid webhook signature")

    response = client.post("/api/v1/webhooks/stripe", content=b"{}", headers={"stripe-signature": "bad"})

    assert response.status_code == 400


def test_webhook_processes_event(client, gateway):
    gateway.verify_webhook_signature.return_value = {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_test_1", "payment_status": "paid"}},
    }

    response = client.post("/api/v1/webhooks/stripe", content=b"{}", headers={"stripe-signature": "t=1,v1=x"})

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert client.get("/api/v1/waitlist/entry", params={"email": "ada@mail.com"}).status_code == 200


def test_webhook_handler_error_is_500(client, orchestrator, gateway):
    gateway.verify_webhook_signature.return_value = {"id": "evt_1", "type": "checkout.session.completed"}

    with patch.object(orchestrator, "handle_webhook_event", side_effect=RuntimeError("boom")):
        response = client.post("/api/v1/webhooks/stripe", content=b"{}")

    assert response.status_code == 500
