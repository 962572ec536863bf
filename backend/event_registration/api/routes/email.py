"""
Email template endpoints called back by the notification automation.
"""

from fastapi import APIRouter, Depends

from event_registration.core.security import require_automation
from event_registration.schemas.notification import EmailPayload, EmailTemplateResponse
from event_registration.services.notification_service import (
    body_for_json,
    format_confirmation_email,
    format_waiting_list_email,
)

router = APIRouter(prefix="/email", tags=["Email"], dependencies=[Depends(require_automation)])


@router.post("/confirmation", response_model=EmailTemplateResponse)
async def confirmation_email(payload: EmailPayload):
    email = format_confirmation_email(payload.model_dump())
    return EmailTemplateResponse(subject=email["subject"], body=body_for_json(email["body"]))


@router.post("/waiting-list", response_model=EmailTemplateResponse)
async def waiting_list_email(payload: EmailPayload):
    email = format_waiting_list_email(payload.model_dump())
    return EmailTemplateResponse(subject=email["subject"], body=body_for_json(email["body"]))
