"""Contact form router for handling visitor inquiries."""

import json

from fastapi import APIRouter, Depends, Request
from loguru import logger

from helpers.request_utils import get_client_ip
from models.exceptions import InvalidPayloadException
from models.schemas import ContactFormResponse
from services.contact_service import ContactService
from services.rate_limit_service import ContactAbuseStore

router = APIRouter(prefix="/contact", tags=["contact"])


def get_abuse_store(request: Request) -> ContactAbuseStore:
    """Return the process-wide anti-abuse store created in main.py."""
    return request.app.state.abuse_store


@router.post("", response_model=ContactFormResponse, response_model_exclude_none=True)
async def submit_contact_form(
    request: Request,
    store: ContactAbuseStore = Depends(get_abuse_store),
) -> ContactFormResponse:
    """Submit the contact form.

    The body is read by hand so that malformed JSON answers 400 with the
    same envelope as every other outcome. No authentication required.

    Returns:
        {ok: true, message} for delivered, duplicate and silently dropped
        submissions alike

    Raises:
        InvalidPayloadException: 400 if the body is not a JSON object
        (other failures are raised by ContactService and handled in main.py)
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidPayloadException()

    if not isinstance(body, dict):
        raise InvalidPayloadException()

    client_ip = get_client_ip(request)
    result = await ContactService.submit_contact_form(
        body, request.headers, client_ip, store
    )

    logger.info(
        f"Contact form processed: outcome={result.outcome.value} "
        f"delivered={result.delivered}"
    )
    return ContactFormResponse(ok=True, message=result.message)
