"""Email service for sending contact notifications.

This module provides a unified interface for sending emails through various providers.
Supports:
- resend: Resend HTTP API (production)
- console: Logs emails to console (development)

Sends are attempted once; a failure is reported to the caller, never retried.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
from loguru import logger

from models.config import settings
from models.schemas import EmailSendResult


@dataclass
class OutboundEmail:
    """A plain-text email ready to hand to a provider."""

    from_email: str
    to_email: str
    reply_to: str
    subject: str
    text: str


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @abstractmethod
    async def send(self, email: OutboundEmail) -> EmailSendResult:
        """Send an email."""
        pass


class ResendProvider(EmailProvider):
    """Resend transactional email API provider."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self.api_url = settings.RESEND_API_URL
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS

    async def send(self, email: OutboundEmail) -> EmailSendResult:
        """Send email via the Resend API.

        Returns:
            EmailSendResult with the Resend message id on success, or the
            status and body (or transport error) on failure
        """
        body = {
            "from": email.from_email,
            "to": [email.to_email],
            "reply_to": email.reply_to,
            "subject": email.subject,
            "text": email.text,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Resend: request to {self.api_url} failed - {e!r}")
            return EmailSendResult(ok=False, error={"message": str(e) or repr(e)})

        if not response.is_success:
            logger.error(f"Resend: returned status {response.status_code}")
            return EmailSendResult(
                ok=False,
                error={"status": response.status_code, "body": response.text},
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        email_id = payload.get("id") if isinstance(payload, dict) else None
        return EmailSendResult(
            ok=True, id=email_id if isinstance(email_id, str) else None
        )


class ConsoleProvider(EmailProvider):
    """Console email provider for development/testing."""

    async def send(self, email: OutboundEmail) -> EmailSendResult:
        """Log email to console."""
        logger.info(
            f"\n{'=' * 60}\n"
            f"EMAIL (Console Provider - Development Mode)\n"
            f"{'=' * 60}\n"
            f"From: {email.from_email}\n"
            f"To: {email.to_email}\n"
            f"Reply-To: {email.reply_to}\n"
            f"Subject: {email.subject}\n"
            f"{'-' * 60}\n"
            f"{email.text}\n"
            f"{'=' * 60}\n"
        )
        return EmailSendResult(ok=True, id=None)


def get_email_provider(api_key: str) -> EmailProvider:
    """Get the configured email provider."""
    provider_name = settings.EMAIL_PROVIDER.lower()

    if provider_name == "resend":
        return ResendProvider(api_key)
    elif provider_name == "console":
        return ConsoleProvider()
    else:
        logger.warning(f"Unknown email provider '{provider_name}', using resend")
        return ResendProvider(api_key)
