"""
Public registration endpoints: submit the form and read the schedule.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_registration.core.logging import bind_registration_context
from event_registration.db.session import get_db
from event_registration.schemas.registration import (
    RegistrationCreate,
    RegistrationResponse,
    ScheduleStatus,
    SubmissionResponse,
)
from event_registration.services.cache_service import invalidate_counts_cache
from event_registration.services.notification_service import notify_submission, registration_payload
from event_registration.services.registration_workflow import submit
from event_registration.services.schedule_service import (
    get_registration_opens_at,
    is_registration_open,
    is_registration_postponed,
)

router = APIRouter(prefix="/registrations", tags=["Registrations"])


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_registration(
    data: RegistrationCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a registration.

    Claims a confirmed seat in the chosen region if one is left, otherwise
    places the registrant on the waiting list. One registration per email.
    """
    bind_registration_context(region=data.region)
    registration = await submit(db, data.model_dump())
    await invalidate_counts_cache()
    background_tasks.add_task(
        notify_submission, registration.status, registration_payload(registration)
    )
    return SubmissionResponse(
        status=registration.status,
        registration=RegistrationResponse.model_validate(registration),
    )


@router.get("/status", response_model=ScheduleStatus)
async def registration_status():
    """Whether registration is open, and when it opens if it is not."""
    return ScheduleStatus(
        open=is_registration_open(),
        opens_at=get_registration_opens_at(),
        postponed=is_registration_postponed(),
    )
