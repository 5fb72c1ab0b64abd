"""Contact form service for handling visitor inquiries.

This module runs a submission through the anti-abuse pipeline and sends the
notification email to the estate.

Stages, in order:
normalize -> validate -> rate limit -> duplicate -> request risk ->
email domain -> spam -> notify

Rejections a visitor can act on (invalid fields, undeliverable domain, rate
limit) raise domain exceptions with a real status code. Duplicates and
blocked submissions answer like a success, so a sender probing the form
cannot tell a dropped message from a delivered one.
"""

from datetime import datetime, timezone
from typing import Any, Mapping

from loguru import logger

from helpers.ip_utils import anonymize_ip, hash_email_for_audit
from models.config import settings
from models.exceptions import (
    ContactConfigurationException,
    ContactRateLimitException,
    ContactValidationException,
    EmailDeliveryException,
)
from models.schemas import (
    CheckAction,
    ContactOutcome,
    ContactPayload,
    ContactSubmissionResult,
    RiskResult,
    SpamResult,
)
from services.contact_validation import (
    get_subject_label,
    normalize_payload,
    validate_payload,
)
from services.domain_check_service import DomainCheckService
from services.email_service import OutboundEmail, get_email_provider
from services.rate_limit_service import ContactAbuseStore
from services.request_risk_service import RequestRiskService
from services.spam_service import SpamService


class ContactService:
    """Service for handling contact form submissions."""

    FLAGGED_SUBJECT_PREFIX = "[Possibile spam] "

    MESSAGES = {
        "invalid_fields": "Controlla i campi del modulo e riprova.",
        "burst": "Hai inviato troppe richieste in poco tempo. Attendi qualche minuto.",
        "hourly": "Hai inviato troppe richieste. Attendi circa un'ora e riprova.",
        "duplicate": "Richiesta già ricevuta. Ti risponderemo appena possibile.",
        "received": "Richiesta ricevuta. Ti risponderemo appena possibile.",
        "undeliverable": "Inserisci un indirizzo email reale e raggiungibile.",
        "undeliverable_field": "Il dominio email non risulta valido.",
        "sent": "Messaggio inviato correttamente. Ti risponderemo al più presto.",
    }

    @classmethod
    def _get_email_settings(cls) -> tuple[str, str, str]:
        """Read the notification settings.

        Returns:
            Tuple of (api_key, from_email, to_email)

        Raises:
            ContactConfigurationException: If any of them is missing
        """
        values = {
            "RESEND_API_KEY": settings.RESEND_API_KEY,
            "CONTACT_FROM_EMAIL": settings.CONTACT_FROM_EMAIL,
            "CONTACT_TO_EMAIL": settings.CONTACT_TO_EMAIL,
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ContactConfigurationException(missing)
        return (
            values["RESEND_API_KEY"],
            values["CONTACT_FROM_EMAIL"],
            values["CONTACT_TO_EMAIL"],
        )

    @classmethod
    def _build_notification(
        cls,
        payload: ContactPayload,
        client_ip: str,
        risk: RiskResult,
        spam: SpamResult,
        submitted_at: datetime,
    ) -> tuple[str, str]:
        """Build the notification for the estate.

        Returns:
            Tuple of (subject, text_body)
        """
        subject_label = get_subject_label(payload.subject)
        reasons = [*risk.reasons, *spam.reasons]
        flagged = CheckAction.FLAG in (risk.action, spam.action)
        prefix = cls.FLAGGED_SUBJECT_PREFIX if flagged else ""

        subject = f"{prefix}Modulo Contatti - {subject_label} - {payload.name}"
        text = "\n".join(
            [
                "Nuova richiesta dal Modulo Contatti",
                "",
                f"Data UTC: {submitted_at.isoformat(timespec='milliseconds')}",
                f"Nome: {payload.name}",
                f"Email: {payload.email}",
                f"Telefono: {payload.phone or 'Non indicato'}",
                f"Oggetto: {subject_label}",
                "",
                "Messaggio:",
                payload.message,
                "",
                f"IP cliente: {client_ip}",
                f"Segnali anti-spam: {', '.join(reasons) if reasons else 'nessuno'}",
            ]
        )
        return subject, text

    @classmethod
    def _masked(cls, outcome: ContactOutcome, message_key: str) -> ContactSubmissionResult:
        return ContactSubmissionResult(outcome=outcome, message=cls.MESSAGES[message_key])

    @classmethod
    async def submit_contact_form(
        cls,
        body: Mapping[str, Any],
        headers: Mapping[str, str],
        client_ip: str,
        store: ContactAbuseStore,
    ) -> ContactSubmissionResult:
        """Process a contact form submission.

        Args:
            body: Parsed JSON object sent by the form
            headers: Request headers (User-Agent, Origin, Referer)
            client_ip: Client identifier, "unknown" when unresolvable
            store: Process-wide rate limit and duplicate state

        Returns:
            ContactSubmissionResult; only the SENT outcome delivered an email

        Raises:
            ContactValidationException: Invalid fields or undeliverable domain (422)
            ContactRateLimitException: Burst or hourly ceiling reached (429)
            ContactConfigurationException: Email settings missing (500)
            EmailDeliveryException: Notification email failed to send (502)
        """
        payload = normalize_payload(body)

        errors = validate_payload(payload)
        if errors:
            raise ContactValidationException(cls.MESSAGES["invalid_fields"], errors)

        rate_limit = store.check_rate_limit(client_ip)
        if rate_limit.limited:
            reason = rate_limit.reason or "hourly"
            logger.info(
                f"Contact form rate limited: ip={anonymize_ip(client_ip)} reason={reason}"
            )
            raise ContactRateLimitException(cls.MESSAGES[reason], reason)

        audit_ip = anonymize_ip(client_ip)
        audit_email = hash_email_for_audit(payload.email)

        if store.is_duplicate_submission(client_ip, payload):
            logger.warning(
                f"Contact form duplicate submission ignored: ip={audit_ip} email={audit_email}"
            )
            return cls._masked(ContactOutcome.DUPLICATE, "duplicate")

        risk = RequestRiskService.evaluate(headers)
        if risk.action == CheckAction.BLOCK:
            logger.warning(
                f"Contact form blocked by request risk checks: ip={audit_ip} "
                f"email={audit_email} reasons={risk.reasons}"
            )
            return cls._masked(ContactOutcome.RISK_BLOCKED, "received")

        domain_check = await DomainCheckService.is_likely_deliverable(payload.email_domain)
        if not domain_check.valid:
            logger.info(
                f"Contact form email domain rejected: domain={payload.email_domain} "
                f"reason={domain_check.reason}"
            )
            raise ContactValidationException(
                cls.MESSAGES["undeliverable"],
                {"email": cls.MESSAGES["undeliverable_field"]},
            )

        spam = SpamService.evaluate(payload)
        if spam.action == CheckAction.BLOCK:
            logger.warning(
                f"Contact form spam blocked: ip={audit_ip} email={audit_email} "
                f"reasons={spam.reasons}"
            )
            return cls._masked(ContactOutcome.SPAM_BLOCKED, "received")

        api_key, from_email, to_email = cls._get_email_settings()

        subject, text = cls._build_notification(
            payload, client_ip, risk, spam, datetime.now(timezone.utc)
        )
        provider = get_email_provider(api_key)
        result = await provider.send(
            OutboundEmail(
                from_email=from_email,
                to_email=to_email,
                reply_to=payload.email,
                subject=subject,
                text=text,
            )
        )

        if not result.ok:
            logger.error(f"Contact notification failed to send: {result.error}")
            raise EmailDeliveryException()

        logger.info(
            f"Contact email accepted: id={result.id} request_action={risk.action.value} "
            f"spam_action={spam.action.value} reasons={[*risk.reasons, *spam.reasons]}"
        )
        return ContactSubmissionResult(
            outcome=ContactOutcome.SENT, message=cls.MESSAGES["sent"], email_id=result.id
        )
