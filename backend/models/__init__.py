"""Models package - settings, Pydantic schemas and domain exceptions."""

from .schemas import (
    CheckAction,
    ContactOutcome,
    ContactPayload,
    ContactSubmissionResult,
    DomainCheckResult,
    RateLimitResult,
    RiskResult,
    SpamResult,
)

__all__ = [
    "CheckAction",
    "ContactOutcome",
    "ContactPayload",
    "ContactSubmissionResult",
    "DomainCheckResult",
    "RateLimitResult",
    "RiskResult",
    "SpamResult",
]
