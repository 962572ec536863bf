from event_registration.schemas.registration import (
    RegistrationCreate, RegistrationUpdate, RegistrationResponse,
    SubmissionResponse, RegistrationDeleteResponse, ScheduleStatus,
)
from event_registration.schemas.capacity import (
    RegionCount, CapacityListResponse, CapacityUpdate, CapacityUpdateResponse, RosterResponse,
)
from event_registration.schemas.notification import EmailPayload, EmailTemplateResponse

__all__ = [
    "RegistrationCreate", "RegistrationUpdate", "RegistrationResponse",
    "SubmissionResponse", "RegistrationDeleteResponse", "ScheduleStatus",
    "RegionCount", "CapacityListResponse", "CapacityUpdate", "CapacityUpdateResponse", "RosterResponse",
    "EmailPayload", "EmailTemplateResponse",
]
