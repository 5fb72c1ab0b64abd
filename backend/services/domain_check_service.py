"""
Domain Check Service - rejects email domains that obviously cannot receive mail.

Uses dnspython's asyncio resolver. Resolver failures other than "no such
name" / "no data" are treated as success: an unreachable resolver must never
block a real visitor.
"""

import dns.asyncresolver
import dns.exception
import dns.resolver
from loguru import logger

from models.config import settings
from models.schemas import DomainCheckResult


class DomainCheckService:
    """Deliverability heuristics for the domain of a submitted email."""

    DISPOSABLE_DOMAINS = frozenset(
        {
            "10minutemail.com",
            "discard.email",
            "dispostable.com",
            "emailondeck.com",
            "fakeinbox.com",
            "guerrillamail.com",
            "mailinator.com",
            "maildrop.cc",
            "sharklasers.com",
            "tempmail.com",
            "temp-mail.org",
            "yopmail.com",
        }
    )

    # Lookup order; the first record type found decides
    RECORD_TYPES = ("MX", "A", "AAAA")

    @staticmethod
    def _get_resolver() -> dns.asyncresolver.Resolver:
        resolver = dns.asyncresolver.Resolver()
        resolver.lifetime = settings.DNS_LOOKUP_TIMEOUT_SECONDS
        return resolver

    @classmethod
    async def has_dns_records(cls, record_type: str, domain: str) -> bool:
        """
        Look up one record type for a domain.

        Args:
            record_type: "MX", "A" or "AAAA"
            domain: Bare domain name

        Returns:
            True when records exist or the lookup failed for another reason
            than a missing name or missing data
        """
        try:
            answer = await cls._get_resolver().resolve(domain, record_type)
            return len(answer) > 0
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return False
        except (dns.exception.DNSException, OSError) as e:
            logger.warning(
                f"DNS {record_type} lookup for {domain} failed, allowing: {e!r}"
            )
            return True

    @classmethod
    async def is_likely_deliverable(cls, domain: str) -> DomainCheckResult:
        """
        Decide whether an email domain is plausibly deliverable.

        Args:
            domain: Part of the email after the last "@"

        Returns:
            DomainCheckResult whose reason is "domain-format",
            "disposable-domain", "dns-missing" or the record type that matched
        """
        if not domain or len(domain) < 3 or "." not in domain:
            return DomainCheckResult(valid=False, reason="domain-format")

        if domain in cls.DISPOSABLE_DOMAINS:
            return DomainCheckResult(valid=False, reason="disposable-domain")

        for record_type in cls.RECORD_TYPES:
            if await cls.has_dns_records(record_type, domain):
                return DomainCheckResult(valid=True, reason=record_type.lower())

        return DomainCheckResult(valid=False, reason="dns-missing")
