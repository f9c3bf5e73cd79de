"""Email module."""

from journey.email.service import EmailService, email_service
from journey.email.templates import RenderedEmail

__all__ = ["EmailService", "RenderedEmail", "email_service"]
