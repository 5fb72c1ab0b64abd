"""
Request Risk Service - transport-level checks on contact submissions.

Looks at the User-Agent, Origin and Referer headers to tell a browser on the
estate's own site from scripted clients and cross-site posts.
"""

import re
from typing import Mapping
from urllib.parse import urlsplit

from models.config import settings
from models.schemas import CheckAction, RiskResult


class RequestRiskService:
    """Classifies the source of a contact request."""

    BLOCKED_USER_AGENT_PATTERNS = [
        re.compile(pattern, re.IGNORECASE)
        for pattern in (
            r"python-requests",
            r"curl/",
            r"wget",
            r"httpclient",
            r"scrapy",
            r"go-http-client",
            r"node-fetch",
            r"aiohttp",
        )
    ]

    # Reasons that are enough to drop the submission on their own
    BLOCKING_REASONS = frozenset({"automated-user-agent", "untrusted-origin"})

    @staticmethod
    def is_allowed_source_host(url_or_origin: str) -> bool:
        """
        Check whether an Origin or Referer points at a trusted host.

        Malformed URLs are untrusted.
        """
        try:
            parsed = urlsplit(url_or_origin)
            host = parsed.hostname
        except ValueError:
            return False

        if not parsed.scheme or not host:
            return False

        host = host.lower()
        allowed_hosts = {h.lower() for h in settings.ALLOWED_ORIGIN_HOSTS}
        if host in allowed_hosts:
            return True

        suffix = settings.PREVIEW_HOST_SUFFIX.lower()
        return bool(suffix) and host.endswith(suffix)

    @classmethod
    def is_automated_user_agent(cls, user_agent: str) -> bool:
        return any(p.search(user_agent) for p in cls.BLOCKED_USER_AGENT_PATTERNS)

    @classmethod
    def evaluate(cls, headers: Mapping[str, str]) -> RiskResult:
        """
        Evaluate the request headers.

        Args:
            headers: Request headers (a case-insensitive mapping such as
                starlette's Headers)

        Returns:
            RiskResult: block on an automated client or a foreign Origin,
            flag on any other signal, allow otherwise
        """
        user_agent = (headers.get("user-agent") or "").strip()
        origin = (headers.get("origin") or "").strip()
        referer = (headers.get("referer") or "").strip()

        reasons: list[str] = []

        if not user_agent:
            reasons.append("missing-user-agent")
        elif cls.is_automated_user_agent(user_agent):
            reasons.append("automated-user-agent")

        if origin and not cls.is_allowed_source_host(origin):
            reasons.append("untrusted-origin")
        if referer and not cls.is_allowed_source_host(referer):
            reasons.append("untrusted-referer")

        if cls.BLOCKING_REASONS.intersection(reasons):
            return RiskResult(action=CheckAction.BLOCK, reasons=reasons)
        if reasons:
            return RiskResult(action=CheckAction.FLAG, reasons=reasons)
        return RiskResult(action=CheckAction.ALLOW, reasons=reasons)
