"""Tests for the SendGrid client and the email templates."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from journey.email.service import EmailService
from journey.email.templates import (
    render_boarding_pass,
    render_internal_notification,
    render_payment_receipt,
    render_sequence_email,
)
from journey.exceptions import NotificationDeliveryError
from journey.sequence.models import EmailType


@pytest.fixture
def service() -> EmailService:
    return EmailService(api_key="SG.test", from_email="hello@journey.io", from_name="Journey")


@pytest.mark.asyncio
async def test_disabled_without_api_key():
    service = EmailService(api_key="")

    assert service.enabled is False
    assert await service.send("ada@mail.com", "Hi", "<p>Hi</p>") is False


@pytest.mark.asyncio
async def test_send_posts_sendgrid_payload(service):
    post = AsyncMock(return_value=httpx.Response(202))
    with patch.object(httpx.AsyncClient, "post", post):
        assert await service.send("ada@mail.com", "Hi", "<p>Hi</p>", "Hi") is True

    url = post.await_args.args[0]
    payload = post.await_args.kwargs["json"]
    headers = post.await_args.kwargs["headers"]
    assert url == EmailService.SENDGRID_API_URL
    assert payload["personalizations"][0]["to"] == [{"email": "ada@mail.com"}]
    assert payload["personalizations"][0]["subject"] == "Hi"
    assert payload["from"] == {"email": "hello@journey.io", "name": "Journey"}
    assert [c["type"] for c in payload["content"]] == ["text/plain", "text/html"]
    assert headers["Authorization"] == "Bearer SG.test"


@pytest.mark.asyncio
async def test_rejected_send_raises(service):
    post = AsyncMock(return_value=httpx.Response(400, text="bad request"))
    with patch.object(httpx.AsyncClient, "post", post):
        with pytest.raises(NotificationDeliveryError):
            await service.send("ada@mail.com", "Hi", "<p>Hi</p>")


@pytest.mark.asyncio
async def test_transport_error_raises(service):
    post = AsyncMock(side_effect=httpx.ConnectError("unreachable"))
    with patch.object(httpx.AsyncClient, "post", post):
        with pytest.raises(NotificationDeliveryError):
            await service.send("ada@mail.com", "Hi", "<p>Hi</p>")


@pytest.mark.asyncio
async def test_internal_notification_goes_to_every_admin(service):
    post = AsyncMock(return_value=httpx.Response(202))
    with patch.object(httpx.AsyncClient, "post", post):
        sent = await service.send_internal_notification(
            "ada@mail.com", "Ada", "paid", 1, recipients=["ops@journey.io", "founder@journey.io"]
        )

    assert sent == 2
    assert post.await_count == 2


@pytest.mark.asyncio
async def test_internal_notification_without_recipients(service):
    assert await service.send_internal_notification("ada@mail.com", None, "free", recipients=[]) == 0


def test_names_are_escaped():
    email = render_boarding_pass("<script>alert(1)</script>", 7)

    assert "<script>" not in email.html
    assert "&lt;script&gt;" in email.html
    assert "#7" in email.text


def test_missing_name_falls_back():
    assert "Hello Passenger," in render_boarding_pass(None, 1).text


def test_payment_receipt():
    email = render_payment_receipt("Ada", 1, "pi_123", 4)

    assert "$0.01" in email.text
    assert "pi_123" in email.text
    assert "#4" in email.text


def test_internal_notification_tiers():
    paid = render_internal_notification("ada@mail.com", "Ada", "paid", 1)
    free = render_internal_notification("bob@mail.com", None, "free")

    assert "Paid ($0.01)" in paid.subject
    assert "Free" in free.subject
    assert "bob@mail.com" in free.subject


@pytest.mark.parametrize("email_type", list(EmailType))
def test_every_sequence_email_renders(email_type):
    email = render_sequence_email(email_type, "Subject", "Ada", 12)

    assert email.subject == "Subject"
    assert "Hello Ada," in email.text
    assert "Ada" in email.html
