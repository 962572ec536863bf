"""
Pydantic schemas for per-region capacity and roster counts.
"""

from pydantic import BaseModel, Field

from event_registration.schemas.registration import RegistrationResponse


class RegionCount(BaseModel):
    region: str
    confirmed_count: int
    waiting_list_count: int
    max_capacity: int


class CapacityListResponse(BaseModel):
    counts: list[RegionCount]
    cached: bool = False


class CapacityUpdate(BaseModel):
    region: str
    max_capacity: int = Field(..., ge=0)


class CapacityUpdateResponse(BaseModel):
    region: str
    confirmed_count: int
    max_capacity: int

    model_config = {"from_attributes": True}


class RosterResponse(BaseModel):
    registrations: list[RegistrationResponse]
    counts: list[RegionCount]
