from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# Contact Pipeline Schemas
class ContactPayload(BaseModel):
    """Canonical contact submission, produced by normalize_payload().

    All string fields are stripped of NUL characters, trimmed and clamped.
    form_started_at may be NaN when the client sent no usable timestamp.
    """

    name: str = ""
    email: str = ""
    phone: str = ""
    subject: str = ""
    message: str = ""
    website: str = ""  # honeypot, expected empty
    privacy: bool = False
    form_started_at: float = Field(
        default=float("nan"),
        description="Client-reported epoch milliseconds of the first form render",
    )
    email_domain: str = ""


class CheckAction(str, Enum):
    """Outcome of a risk or spam evaluation."""

    ALLOW = "allow"
    FLAG = "flag"  # delivered, but tagged for a human reviewer
    BLOCK = "block"  # silently dropped


class SpamResult(BaseModel):
    """Result of the payload spam heuristics.

    Reason codes are for audit logs and the notification body only.
    """

    action: CheckAction
    reasons: list[str] = Field(default_factory=list)


class RiskResult(SpamResult):
    """Result of the transport-level request checks."""

    pass


class RateLimitResult(BaseModel):
    limited: bool
    reason: Optional[str] = None  # "burst" | "hourly"


class DomainCheckResult(BaseModel):
    valid: bool
    reason: str


class EmailSendResult(BaseModel):
    """Outcome of a single outbound email call."""

    ok: bool
    id: Optional[str] = None
    error: Optional[dict] = None


class ContactOutcome(str, Enum):
    """Terminal states of a submission that answer with HTTP 200."""

    SENT = "sent"
    DUPLICATE = "duplicate"
    RISK_BLOCKED = "risk_blocked"
    SPAM_BLOCKED = "spam_blocked"


class ContactSubmissionResult(BaseModel):
    outcome: ContactOutcome
    message: str
    email_id: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.outcome == ContactOutcome.SENT


class ContactFormResponse(BaseModel):
    """Response body of the contact endpoint."""

    ok: bool
    message: str
    errors: Optional[dict[str, str]] = None
