"""
Spam Service

Scores the content of a contact submission into allow / flag / block.
"""

import math
import re
import time
from typing import List, Pattern

from models.schemas import CheckAction, ContactPayload, SpamResult


class SpamService:
    """Content heuristics for contact submissions."""

    # Minimum time a human needs between first render and submit
    MIN_FORM_FILL_MS = 1200
    MAX_LINKS = 2

    SPAM_PATTERNS: List[Pattern[str]] = [
        re.compile(pattern, re.IGNORECASE | re.ASCII)
        for pattern in (
            r"\bseo\b",
            r"\bposizionamento\s+google\b",
            r"\blink\s*building\b",
            r"\bbacklinks?\b",
            r"\bguest\s*post",
            r"\bcasino\b",
            r"\bscommesse\b",
            r"\bslot\b",
            r"\bviagra\b",
            r"\bcrypto\b",
            r"\bcriptovalut\w*\b",
            r"\bforex\b",
            r"\bloan\b",
            r"\bprestito\s+rapido\b",
            r"\bwhatsapp\b",
            r"\btelegram\b",
            r"\bonlyfans\b",
            r"\badult\b",
            r"\bofferta\s+commerciale\b",
            r"\bmake money fast\b",
            r"\bwork from home\b",
        )
    ]

    LINK_PATTERN = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
    REPEATED_CHARS_PATTERN = re.compile(
        r"([a-z0-9])\1{8,}", re.IGNORECASE | re.ASCII
    )
    WHITESPACE_PATTERN = re.compile(r"\s+")

    @classmethod
    def count_keyword_hits(cls, text: str) -> int:
        """Number of distinct spam patterns found in text."""
        return sum(1 for pattern in cls.SPAM_PATTERNS if pattern.search(text))

    @classmethod
    def evaluate(cls, payload: ContactPayload, now_ms: float | None = None) -> SpamResult:
        """
        Evaluate a normalized payload.

        All signals are computed before deciding, so the reasons list is
        complete even when the honeypot alone decides the outcome.

        Args:
            payload: Normalized contact payload
            now_ms: Current epoch milliseconds (defaults to the wall clock)

        Returns:
            SpamResult with the action and the reason codes in signal order
        """
        if now_ms is None:
            now_ms = time.time() * 1000

        reasons: list[str] = []

        honeypot = bool(payload.website)
        if honeypot:
            reasons.append("honeypot")

        started_at = payload.form_started_at
        has_timing = math.isfinite(started_at) and started_at > 0

        too_fast = has_timing and now_ms - started_at < cls.MIN_FORM_FILL_MS
        if too_fast:
            reasons.append("submitted-too-fast")

        missing_timing = not has_timing
        if missing_timing:
            reasons.append("missing-timing-signal")

        combined = f"{payload.name} {payload.email} {payload.subject} {payload.message}"
        keyword_hits = cls.count_keyword_hits(combined)
        if keyword_hits > 0:
            reasons.append(f"keywords:{keyword_hits}")

        many_links = len(cls.LINK_PATTERN.findall(payload.message)) > cls.MAX_LINKS
        if many_links:
            reasons.append("too-many-links")

        repeated_chars = cls.REPEATED_CHARS_PATTERN.search(payload.message) is not None
        if repeated_chars:
            reasons.append("repeated-characters")

        very_short = len(cls.WHITESPACE_PATTERN.split(payload.message)) <= 2
        if very_short:
            reasons.append("very-short-message")

        if honeypot:
            return SpamResult(action=CheckAction.BLOCK, reasons=reasons)

        clear_spam = (
            keyword_hits >= 2
            or (keyword_hits >= 1 and many_links)
            or (many_links and repeated_chars)
        )
        if clear_spam:
            return SpamResult(action=CheckAction.BLOCK, reasons=reasons)

        suspicious = (
            too_fast
            or missing_timing
            or keyword_hits == 1
            or many_links
            or repeated_chars
            or very_short
        )
        if suspicious:
            return SpamResult(action=CheckAction.FLAG, reasons=reasons)

        return SpamResult(action=CheckAction.ALLOW, reasons=reasons)
