"""Tests for RequestRiskService header checks."""

from unittest.mock import patch

import pytest
from starlette.datastructures import Headers

from models.schemas import CheckAction
from services.request_risk_service import RequestRiskService

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) Gecko/20100101 Firefox/128.0"
)
SITE = "https://www.castellomongivetto.com"


def _headers(**values: str) -> Headers:
    return Headers({key.replace("_", "-"): value for key, value in values.items()})


class TestIsAllowedSourceHost:
    """Tests for the Origin/Referer host allow-list."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://castellomongivetto.com",
            "https://www.castellomongivetto.com/contatti",
            "https://WWW.CastelloMongivetto.com",
            "https://castello-mongivetto.vercel.app",
            "https://castello-git-preview-team.vercel.app/galleria",
        ],
    )
    def test_trusted_hosts(self, url: str) -> None:
        assert RequestRiskService.is_allowed_source_host(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "https://evil.example",
            "https://castellomongivetto.com.evil.example",
            "https://vercel.app.evil.example",
            "null",
            "not a url",
            "http://[::1",
        ],
    )
    def test_untrusted_or_malformed(self, url: str) -> None:
        assert RequestRiskService.is_allowed_source_host(url) is False

    def test_allow_list_comes_from_settings(self) -> None:
        with patch("services.request_risk_service.settings") as mock_settings:
            mock_settings.ALLOWED_ORIGIN_HOSTS = ["example.org"]
            mock_settings.PREVIEW_HOST_SUFFIX = ""
            assert RequestRiskService.is_allowed_source_host("https://example.org")
            assert not RequestRiskService.is_allowed_source_host(SITE)
            assert not RequestRiskService.is_allowed_source_host(
                "https://x.vercel.app"
            )


class TestEvaluate:
    """Tests for RequestRiskService.evaluate."""

    def test_browser_on_site_is_allowed(self) -> None:
        result = RequestRiskService.evaluate(
            _headers(user_agent=BROWSER_USER_AGENT, origin=SITE, referer=SITE + "/")
        )
        assert result.action == CheckAction.ALLOW
        assert result.reasons == []

    def test_missing_user_agent_flags(self) -> None:
        result = RequestRiskService.evaluate(_headers(origin=SITE))
        assert result.action == CheckAction.FLAG
        assert result.reasons == ["missing-user-agent"]

    @pytest.mark.parametrize(
        "user_agent",
        [
            "python-requests/2.32.3",
            "curl/8.7.1",
            "Wget/1.21",
            "Apache-HttpClient/4.5.14",
            "Scrapy/2.11 (+https://scrapy.org)",
            "Go-http-client/2.0",
            "node-fetch/1.0",
            "Python/3.12 aiohttp/3.9.5",
        ],
    )
    def test_automated_user_agent_blocks(self, user_agent: str) -> None:
        result = RequestRiskService.evaluate(_headers(user_agent=user_agent))
        assert result.action == CheckAction.BLOCK
        assert result.reasons == ["automated-user-agent"]

    def test_untrusted_origin_blocks(self) -> None:
        result = RequestRiskService.evaluate(
            _headers(user_agent=BROWSER_USER_AGENT, origin="https://evil.example")
        )
        assert result.action == CheckAction.BLOCK
        assert result.reasons == ["untrusted-origin"]

    def test_untrusted_referer_only_flags(self) -> None:
        result = RequestRiskService.evaluate(
            _headers(
                user_agent=BROWSER_USER_AGENT,
                referer="https://www.google.com/search?q=castello",
            )
        )
        assert result.action == CheckAction.FLAG
        assert result.reasons == ["untrusted-referer"]

    def test_malformed_origin_blocks(self) -> None:
        result = RequestRiskService.evaluate(
            _headers(user_agent=BROWSER_USER_AGENT, origin="::::")
        )
        assert result.action == CheckAction.BLOCK
        assert "untrusted-origin" in result.reasons

    def test_blank_headers_are_absent(self) -> None:
        """Whitespace-only Origin/Referer are ignored, a blank UA is missing."""
        result = RequestRiskService.evaluate(
            _headers(user_agent="   ", origin="  ", referer=" ")
        )
        assert result.action == CheckAction.FLAG
        assert result.reasons == ["missing-user-agent"]

    def test_reasons_accumulate(self) -> None:
        result = RequestRiskService.evaluate(
            _headers(origin="https://evil.example", referer="https://evil.example/x")
        )
        assert result.action == CheckAction.BLOCK
        assert result.reasons == [
            "missing-user-agent",
            "untrusted-origin",
            "untrusted-referer",
        ]

    def test_accepts_plain_dict(self) -> None:
        result = RequestRiskService.evaluate({"user-agent": "curl/8.0"})
        assert result.action == CheckAction.BLOCK
