"""
Rate Limit Service - in-memory anti-abuse state for the contact form.

ContactAbuseStore owns the two process-wide maps used by the contact pipeline:
- submission timestamps per client (burst and hourly ceilings)
- content fingerprints of recent submissions (duplicate suppression)

One store is created per process (see main.py) and injected into the router.
State lives only in memory and is lost on restart. Each map is guarded by its
own lock because pruning walks the whole map on every check.
"""

import hashlib
import re
import threading
import time
from typing import Dict, List

from helpers.request_utils import UNKNOWN_CLIENT
from models.schemas import ContactPayload, RateLimitResult


def now_ms() -> float:
    """Current epoch time in milliseconds."""
    return time.time() * 1000


class ContactAbuseStore:
    """Rate limiter and duplicate detector for contact submissions."""

    RATE_LIMIT_MAX = 8
    RATE_LIMIT_WINDOW_MS = 60 * 60 * 1000
    RATE_LIMIT_BURST_MAX = 3
    RATE_LIMIT_BURST_WINDOW_MS = 10 * 60 * 1000
    DUPLICATE_WINDOW_MS = 20 * 60 * 1000

    _WHITESPACE = re.compile(r"\s+")

    def __init__(self) -> None:
        self._submissions: Dict[str, List[float]] = {}
        self._fingerprints: Dict[str, float] = {}
        self._submissions_lock = threading.Lock()
        self._fingerprints_lock = threading.Lock()

    def check_rate_limit(
        self, identifier: str, now: float | None = None
    ) -> RateLimitResult:
        """
        Check and record a submission attempt for a client.

        Expired clients are pruned first. A rejected attempt is not recorded,
        and the burst ceiling takes precedence over the hourly one.

        Args:
            identifier: Client IP address, or "unknown"
            now: Current epoch milliseconds (defaults to the wall clock)

        Returns:
            RateLimitResult with reason "burst" or "hourly" when limited
        """
        key = identifier or UNKNOWN_CLIENT
        if now is None:
            now = now_ms()
        hourly_cutoff = now - self.RATE_LIMIT_WINDOW_MS
        burst_cutoff = now - self.RATE_LIMIT_BURST_WINDOW_MS

        with self._submissions_lock:
            for entry_key in list(self._submissions):
                recent = [ts for ts in self._submissions[entry_key] if ts > hourly_cutoff]
                if recent:
                    self._submissions[entry_key] = recent
                else:
                    del self._submissions[entry_key]

            timestamps = self._submissions.get(key, [])
            burst_count = sum(1 for ts in timestamps if ts > burst_cutoff)

            if burst_count >= self.RATE_LIMIT_BURST_MAX:
                return RateLimitResult(limited=True, reason="burst")

            if len(timestamps) >= self.RATE_LIMIT_MAX:
                return RateLimitResult(limited=True, reason="hourly")

            timestamps.append(now)
            self._submissions[key] = timestamps
            return RateLimitResult(limited=False)

    @classmethod
    def fingerprint(cls, identifier: str, payload: ContactPayload) -> str:
        """SHA-256 over client, email, subject and the whitespace-folded message."""
        normalized_message = cls._WHITESPACE.sub(" ", payload.message.lower()).strip()
        raw = f"{identifier}|{payload.email}|{payload.subject}|{normalized_message}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def is_duplicate_submission(
        self, identifier: str, payload: ContactPayload, now: float | None = None
    ) -> bool:
        """
        Detect an immediate resubmission of the same content.

        A live duplicate does not refresh the stored timestamp, so the window
        counts from the first accepted copy.

        Args:
            identifier: Client IP address, or "unknown"
            payload: Normalized contact payload
            now: Current epoch milliseconds (defaults to the wall clock)

        Returns:
            True when the same content was accepted within the window
        """
        if now is None:
            now = now_ms()
        cutoff = now - self.DUPLICATE_WINDOW_MS

        with self._fingerprints_lock:
            for fingerprint, timestamp in list(self._fingerprints.items()):
                if timestamp < cutoff:
                    del self._fingerprints[fingerprint]

            fingerprint = self.fingerprint(identifier, payload)
            previous = self._fingerprints.get(fingerprint)
            if previous is not None and now - previous < self.DUPLICATE_WINDOW_MS:
                return True

            self._fingerprints[fingerprint] = now
            return False

    def tracked_clients(self) -> int:
        """Number of clients with submissions inside the hourly window."""
        with self._submissions_lock:
            return len(self._submissions)

    def tracked_fingerprints(self) -> int:
        with self._fingerprints_lock:
            return len(self._fingerprints)

    def reset(self) -> None:
        """
        Drop all recorded state.

        Useful for testing.
        """
        with self._submissions_lock:
            self._submissions.clear()
        with self._fingerprints_lock:
            self._fingerprints.clear()
