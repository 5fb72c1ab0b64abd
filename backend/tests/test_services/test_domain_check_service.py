"""Tests for DomainCheckService deliverability heuristics."""

from unittest.mock import AsyncMock, Mock, patch

import dns.exception
import dns.resolver
import pytest

from services.domain_check_service import DomainCheckService


def _resolver(outcomes: dict) -> Mock:
    """Build a fake resolver; outcomes maps record type to records or an exception."""

    async def resolve(domain, record_type):
        outcome = outcomes.get(record_type, dns.resolver.NoAnswer())
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    resolver = Mock()
    resolver.resolve = AsyncMock(side_effect=resolve)
    return resolver


class TestHasDnsRecords:
    """Tests for DomainCheckService.has_dns_records."""

    @pytest.mark.asyncio
    async def test_records_found(self) -> None:
        with patch.object(
            DomainCheckService, "_get_resolver", return_value=_resolver({"MX": ["mx1"]})
        ):
            assert await DomainCheckService.has_dns_records("MX", "example.it") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [dns.resolver.NXDOMAIN(), dns.resolver.NoAnswer()]
    )
    async def test_missing_name_or_data_is_negative(self, error) -> None:
        with patch.object(
            DomainCheckService, "_get_resolver", return_value=_resolver({"MX": error})
        ):
            assert await DomainCheckService.has_dns_records("MX", "example.it") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            dns.exception.Timeout(),
            dns.resolver.NoNameservers(),
            OSError("network unreachable"),
        ],
    )
    async def test_resolver_failures_fail_open(self, error) -> None:
        with patch.object(
            DomainCheckService, "_get_resolver", return_value=_resolver({"MX": error})
        ):
            assert await DomainCheckService.has_dns_records("MX", "example.it") is True

    def test_resolver_uses_configured_timeout(self) -> None:
        with patch("services.domain_check_service.settings") as mock_settings:
            mock_settings.DNS_LOOKUP_TIMEOUT_SECONDS = 1.5
            with patch("dns.asyncresolver.Resolver") as mock_resolver:
                resolver = DomainCheckService._get_resolver()
        assert resolver is mock_resolver.return_value
        assert resolver.lifetime == 1.5


class TestIsLikelyDeliverable:
    """Tests for DomainCheckService.is_likely_deliverable."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain", ["", "ab", "localhost"])
    async def test_domain_format(self, domain: str) -> None:
        with patch.object(DomainCheckService, "has_dns_records") as mock_lookup:
            result = await DomainCheckService.is_likely_deliverable(domain)
        assert result.valid is False
        assert result.reason == "domain-format"
        mock_lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_disposable_domain(self) -> None:
        with patch.object(DomainCheckService, "has_dns_records") as mock_lookup:
            result = await DomainCheckService.is_likely_deliverable("mailinator.com")
        assert result.valid is False
        assert result.reason == "disposable-domain"
        mock_lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_mx_wins_first(self) -> None:
        resolver = _resolver({"MX": ["mx1"], "A": ["1.2.3.4"]})
        with patch.object(DomainCheckService, "_get_resolver", return_value=resolver):
            result = await DomainCheckService.is_likely_deliverable("example.it")
        assert result.valid is True
        assert result.reason == "mx"
        assert resolver.resolve.await_count == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_a_record(self) -> None:
        resolver = _resolver({"MX": dns.resolver.NoAnswer(), "A": ["1.2.3.4"]})
        with patch.object(DomainCheckService, "_get_resolver", return_value=resolver):
            result = await DomainCheckService.is_likely_deliverable("example.it")
        assert result.valid is True
        assert result.reason == "a"

    @pytest.mark.asyncio
    async def test_falls_back_to_aaaa_record(self) -> None:
        resolver = _resolver({"AAAA": ["2001:db8::1"]})
        with patch.object(DomainCheckService, "_get_resolver", return_value=resolver):
            result = await DomainCheckService.is_likely_deliverable("example.it")
        assert result.valid is True
        assert result.reason == "aaaa"

    @pytest.mark.asyncio
    async def test_no_records_anywhere(self) -> None:
        resolver = _resolver(
            {
                "MX": dns.resolver.NXDOMAIN(),
                "A": dns.resolver.NXDOMAIN(),
                "AAAA": dns.resolver.NXDOMAIN(),
            }
        )
        with patch.object(DomainCheckService, "_get_resolver", return_value=resolver):
            result = await DomainCheckService.is_likely_deliverable("nowhere.invalid")
        assert result.valid is False
        assert result.reason == "dns-missing"
        assert resolver.resolve.await_count == 3

    @pytest.mark.asyncio
    async def test_unreachable_resolver_allows(self) -> None:
        resolver = _resolver({"MX": dns.exception.Timeout()})
        with patch.object(DomainCheckService, "_get_resolver", return_value=resolver):
            result = await DomainCheckService.is_likely_deliverable("example.it")
        assert result.valid is True
        assert result.reason == "mx"
