from event_registration.models.capacity import RegionCapacity
from event_registration.models.registration import Registration

__all__ = ["RegionCapacity", "Registration"]
