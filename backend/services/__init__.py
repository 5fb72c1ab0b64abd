"""
Services layer for the contact pipeline.

Each stage of a contact submission (validation, rate limiting, request risk,
email domain, spam heuristics, delivery) lives in its own module;
ContactService runs them in order.
"""

from .contact_service import ContactService
from .domain_check_service import DomainCheckService
from .rate_limit_service import ContactAbuseStore
from .request_risk_service import RequestRiskService
from .spam_service import SpamService

__all__ = [
    "ContactService",
    "ContactAbuseStore",
    "DomainCheckService",
    "RequestRiskService",
    "SpamService",
]
