"""
Contact payload normalization and validation.

normalize_payload() turns an untrusted JSON body into a ContactPayload and
never fails; validate_payload() reports per-field problems the visitor can fix.
"""

import math
import re
from typing import Any, Mapping

from models.schemas import ContactPayload

MAX_NAME_LENGTH = 120
MAX_EMAIL_LENGTH = 160
MAX_PHONE_LENGTH = 40
MAX_SUBJECT_LENGTH = 40
MAX_MESSAGE_LENGTH = 2500
MAX_WEBSITE_LENGTH = 120
MIN_MESSAGE_LENGTH = 10

EMAIL_PATTERN = re.compile(
    r"[a-z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-z0-9-]+(?:\.[a-z0-9-]+)+",
    re.IGNORECASE | re.ASCII,
)
PHONE_DISALLOWED = re.compile(r"[^0-9+()./\s-]")
# Decimal and Infinity literals accepted by a browser's Number()
NUMERIC_STRING = re.compile(
    r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)

SUBJECT_LABELS: dict[str, str] = {
    "visita": "Prenotazione visita",
    "evento": "Evento privato",
    "informazioni": "Richiesta informazioni",
    "altro": "Altro",
}


def clean_text(value: Any, max_length: int) -> str:
    """Strip NUL characters and surrounding whitespace, then clamp.

    Non-string values become an empty string.
    """
    if not isinstance(value, str):
        return ""
    return value.replace("\x00", "").strip()[:max_length]


def sanitize_phone(phone: str) -> str:
    """Keep digits, whitespace and the punctuation used in phone numbers."""
    return PHONE_DISALLOWED.sub("", phone)


def parse_timestamp(value: Any) -> float:
    """Read a client timestamp the way a browser's Number() would.

    Booleans and numbers convert directly, numeric strings are parsed and a
    blank string counts as zero. Anything else is NaN.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            # Integers beyond float range read as an infinity of the same sign
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if not NUMERIC_STRING.fullmatch(text):
            return math.nan
        return float(text)
    return math.nan


def normalize_payload(body: Mapping[str, Any]) -> ContactPayload:
    """
    Build the canonical payload from a raw JSON object.

    Args:
        body: Parsed request body; every field is optional and untrusted.

    Returns:
        ContactPayload with bounded, NUL-free strings.
    """
    email = clean_text(body.get("email"), MAX_EMAIL_LENGTH).lower()
    email_domain = email.rsplit("@", 1)[1] if "@" in email else ""

    return ContactPayload(
        name=clean_text(body.get("name"), MAX_NAME_LENGTH),
        email=email,
        phone=sanitize_phone(clean_text(body.get("phone"), MAX_PHONE_LENGTH)),
        subject=clean_text(body.get("subject"), MAX_SUBJECT_LENGTH).lower(),
        message=clean_text(body.get("message"), MAX_MESSAGE_LENGTH),
        website=clean_text(body.get("website"), MAX_WEBSITE_LENGTH),
        privacy=body.get("privacy") is True,
        form_started_at=parse_timestamp(body.get("formStartedAt")),
        email_domain=email_domain,
    )


def validate_payload(payload: ContactPayload) -> dict[str, str]:
    """
    Check required fields and formats.

    Every rule is evaluated; the two message-length rules share the
    "message" key, so the later one wins.

    Returns:
        Mapping of field name to error message; empty when valid.
    """
    errors: dict[str, str] = {}

    if not payload.name:
        errors["name"] = "Inserisci nome e cognome."
    if not payload.email or not EMAIL_PATTERN.fullmatch(payload.email):
        errors["email"] = "Inserisci un indirizzo email valido."
    if payload.subject not in SUBJECT_LABELS:
        errors["subject"] = "Seleziona una tipologia valida."
    if len(payload.message) < MIN_MESSAGE_LENGTH:
        errors["message"] = "Inserisci un messaggio di almeno 10 caratteri."
    if len(payload.message) > MAX_MESSAGE_LENGTH:
        errors["message"] = "Il messaggio è troppo lungo."
    if not payload.privacy:
        errors["privacy"] = "È necessario accettare il consenso privacy."

    return errors


def get_subject_label(subject: str) -> str:
    """Human-readable label of a subject key, "Altro" for unknown keys."""
    return SUBJECT_LABELS.get(subject, SUBJECT_LABELS["altro"])
