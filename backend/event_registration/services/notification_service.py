"""
Registrant notifications.

After a submission commits, the registrant's details are posted to an
automation webhook (one URL for confirmed, one for waiting list). The
automation tool then asks the email endpoints for the rendered subject and
body. Delivery is best effort: a webhook failure is logged and never
affects the registration itself.
"""

from typing import Mapping, Optional

import httpx

from event_registration.core.config import get_settings
from event_registration.core.logging import get_logger
from event_registration.models.registration import STATUS_CONFIRMED, Registration

logger = get_logger(__name__)

PAYLOAD_FIELDS = ("first_name", "last_name", "program", "region", "title", "email")


def registration_payload(registration: Registration) -> dict:
    return {field: getattr(registration, field) for field in PAYLOAD_FIELDS}


def _webhook_for(status: str) -> Optional[str]:
    settings = get_settings()
    if status == STATUS_CONFIRMED:
        return settings.CONFIRMATION_WEBHOOK_URL
    return settings.WAITING_LIST_WEBHOOK_URL


async def notify_submission(
    status: str,
    payload: Mapping[str, str],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """Post the payload to the webhook for `status`. Returns True on a 2xx."""
    url = _webhook_for(status)
    if not url:
        return False

    try:
        async with httpx.AsyncClient(
            timeout=get_settings().WEBHOOK_TIMEOUT, transport=transport
        ) as client:
            response = await client.post(url, json=dict(payload))
    except httpx.HTTPError as e:
        logger.error("webhook_failed", status=status, error=str(e))
        return False

    if response.is_error:
        logger.error(
            "webhook_failed",
            status=status,
            status_code=response.status_code,
            body=response.text[:500],
        )
        return False

    logger.info("webhook_delivered", status=status)
    return True


def format_confirmation_email(payload: Mapping[str, str]) -> dict:
    settings = get_settings()
    subject = f"{settings.EVENT_NAME} - Registration Confirmed"
    body = (
        f"Dear {payload['first_name']} {payload['last_name']},\n"
        f"\n"
        f"Thank you for registering for {settings.EVENT_NAME} {settings.EVENT_DETAILS}. "
        f"Your spot is confirmed for {payload['region']}. "
        f"Please remember to bring a valid ID.\n"
        f"\n"
        f"Program: {payload['program']}\n"
        f"Title: {payload['title']}\n"
        f"Email: {payload['email']}\n"
        f"\n"
        f"We look forward to seeing you!\n"
        f"{settings.ORGANIZER_SIGNATURE}"
    )
    return {"subject": subject, "body": body}


def format_waiting_list_email(payload: Mapping[str, str]) -> dict:
    settings = get_settings()
    subject = f"{settings.EVENT_NAME} - Waiting List"
    body = (
        f"Dear {payload['first_name']} {payload['last_name']},\n"
        f"\n"
        f"Thank you for your interest in {settings.EVENT_NAME} {settings.EVENT_DETAILS}. "
        f"The capacity for {payload['region']} has been reached, "
        f"and you have been placed on the waiting list.\n"
        f"\n"
        f"Program: {payload['program']}\n"
        f"Title: {payload['title']}\n"
        f"Email: {payload['email']}\n"
        f"\n"
        f"If a spot becomes available, we will contact you at this email address.\n"
        f"\n"
        f"{settings.ORGANIZER_SIGNATURE}"
    )
    return {"subject": subject, "body": body}


def body_for_json(body: str) -> str:
    """Escape newlines for automation tools that expect a literal \\n."""
    return body.replace("\n", "\\n")
