"""Tests for correlation IDs and their propagation to errors and responses."""

import re

from fastapi.testclient import TestClient

from core.correlation import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from models.exceptions import (
    ContactConfigurationException,
    ContactValidationException,
    DomainException,
    InvalidPayloadException,
)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id function."""

    def test_returns_8_lowercase_hex_characters(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{8}", generate_correlation_id())

    def test_generates_unique_ids(self) -> None:
        ids = {generate_correlation_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestCorrelationIdContext:
    """Tests for correlation ID context management."""

    def test_set_and_get(self) -> None:
        set_correlation_id("abc12345")
        assert get_correlation_id() == "abc12345"

    def test_empty_when_not_set(self) -> None:
        correlation_id_var.set("")
        assert get_correlation_id() == ""


class TestExceptionCorrelation:
    """Domain exceptions pick up the request's correlation ID."""

    def test_uses_current_request_id(self) -> None:
        set_correlation_id("req00001")
        exc = ContactValidationException("Errore", {"name": "Inserisci il nome."})
        assert exc.correlation_id == "req00001"

    def test_generates_id_outside_request(self) -> None:
        correlation_id_var.set("")
        exc = InvalidPayloadException()
        assert re.fullmatch(r"[0-9a-f]{8}", exc.correlation_id)

    def test_explicit_id_wins(self) -> None:
        set_correlation_id("req00001")
        exc = DomainException("Errore", correlation_id="explicit")
        assert exc.correlation_id == "explicit"

    def test_configuration_exception_keeps_missing_settings(self) -> None:
        exc = ContactConfigurationException(["RESEND_API_KEY"])
        assert exc.missing == ["RESEND_API_KEY"]
        assert exc.message == "Servizio email non configurato correttamente."


class TestCorrelationHeader:
    """X-Correlation-ID is echoed or generated by the middleware."""

    def test_incoming_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/api/health", headers={"X-Correlation-ID": "feedbeef"})
        assert response.headers["X-Correlation-ID"] == "feedbeef"

    def test_id_generated_when_missing(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert re.fullmatch(r"[0-9a-f]{8}", response.headers["X-Correlation-ID"])
