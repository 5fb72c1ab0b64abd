"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
import time
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["CONTACT_FROM_EMAIL"] = "modulo@castellomongivetto.com"
os.environ["CONTACT_TO_EMAIL"] = "info@castellomongivetto.com"
os.environ["EMAIL_PROVIDER"] = "resend"

from models.schemas import DomainCheckResult, EmailSendResult  # noqa: E402
from services.rate_limit_service import ContactAbuseStore  # noqa: E402

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15"
)


@pytest.fixture
def store() -> ContactAbuseStore:
    """A fresh anti-abuse store."""
    return ContactAbuseStore()


@pytest.fixture
def valid_body() -> dict:
    """A contact form body a real visitor would send."""
    return {
        "name": "Giulia Rossi",
        "email": "giulia.rossi@example.it",
        "phone": "+39 0171 123456",
        "subject": "visita",
        "message": "Buongiorno, vorremmo prenotare una visita guidata per sei persone a maggio.",
        "privacy": True,
        "website": "",
        "formStartedAt": time.time() * 1000 - 60_000,
    }


@pytest.fixture
def browser_headers() -> dict:
    """Headers of a browser posting from the estate's own site."""
    return {
        "User-Agent": BROWSER_USER_AGENT,
        "Origin": "https://www.castellomongivetto.com",
        "Referer": "https://www.castellomongivetto.com/contatti",
        "X-Forwarded-For": "203.0.113.50",
    }


@pytest.fixture
def mock_domain_check():
    """Make every email domain deliverable without touching DNS."""
    with patch(
        "services.contact_service.DomainCheckService.is_likely_deliverable",
        new=AsyncMock(return_value=DomainCheckResult(valid=True, reason="mx")),
    ) as mock:
        yield mock


@pytest.fixture
def mock_provider():
    """Replace the email provider with a mock that accepts every send."""
    with patch("services.contact_service.get_email_provider") as mock_get:
        provider = mock_get.return_value
        provider.send = AsyncMock(return_value=EmailSendResult(ok=True, id="email_123"))
        yield provider


@pytest.fixture(scope="function")
def client():
    """Create a test client with a fresh anti-abuse store."""
    from main import app

    # Reset anti-abuse state before each test to prevent rate limit errors
    app.state.abuse_store = ContactAbuseStore()

    with TestClient(app) as test_client:
        yield test_client
