"""
Pydantic schemas for registration request/response validation.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from event_registration.core.config import get_settings

RegistrationStatusField = Literal["confirmed", "waiting_list"]


def _check_region(value: str) -> str:
    if value not in get_settings().REGIONS:
        raise ValueError("Please select a valid region")
    return value


def _check_program(value: str) -> str:
    programs = get_settings().PROGRAMS
    if programs and value not in programs:
        raise ValueError("Please select a program")
    return value


def _check_email_domain(value: str) -> str:
    domain = get_settings().ALLOWED_EMAIL_DOMAIN
    if domain and not value.lower().endswith("@" + domain.lower()):
        raise ValueError(f"Registration requires an @{domain} email address")
    return value


class RegistrationCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    program: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    region: str

    model_config = {"str_strip_whitespace": True}

    @field_validator("region")
    @classmethod
    def region_must_be_configured(cls, value: str) -> str:
        return _check_region(value)

    @field_validator("program")
    @classmethod
    def program_must_be_offered(cls, value: str) -> str:
        return _check_program(value)

    @field_validator("email")
    @classmethod
    def email_domain_must_match(cls, value: str) -> str:
        return _check_email_domain(value)


class RegistrationUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    program: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    region: Optional[str] = None
    status: Optional[RegistrationStatusField] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("region")
    @classmethod
    def region_must_be_configured(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else _check_region(value)


class RegistrationResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    title: str
    program: str
    email: str
    region: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SubmissionResponse(BaseModel):
    status: str
    registration: RegistrationResponse


class RegistrationDeleteResponse(BaseModel):
    message: str
    registration_id: int


class ScheduleStatus(BaseModel):
    open: bool
    opens_at: Optional[datetime]
    postponed: bool
