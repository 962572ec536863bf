"""
Registration schedule.

- REGISTRATION_POSTPONED=true: closed indefinitely (event postponed).
- REGISTRATION_OPENS_AT: moment registration opens (naive values are UTC).
- Neither set: always open.
"""

from datetime import datetime, timezone
from typing import Optional

from event_registration.core.config import get_settings
from event_registration.core.exceptions import RegistrationClosed


def is_registration_postponed() -> bool:
    return get_settings().REGISTRATION_POSTPONED


def get_registration_opens_at() -> Optional[datetime]:
    settings = get_settings()
    if settings.REGISTRATION_POSTPONED or settings.REGISTRATION_OPENS_AT is None:
        return None
    opens_at = settings.REGISTRATION_OPENS_AT
    if opens_at.tzinfo is None:
        opens_at = opens_at.replace(tzinfo=timezone.utc)
    return opens_at


def is_registration_open(now: Optional[datetime] = None) -> bool:
    if is_registration_postponed():
        return False
    opens_at = get_registration_opens_at()
    if opens_at is None:
        return True
    return (now or datetime.now(timezone.utc)) >= opens_at


def ensure_registration_open(now: Optional[datetime] = None) -> None:
    if is_registration_open(now):
        return
    opens_at = get_registration_opens_at()
    if opens_at is None:
        raise RegistrationClosed("Registration is not open. The event has been postponed.")
    raise RegistrationClosed(
        f"Registration opens on {opens_at.strftime('%B %d, %Y at %H:%M %Z')}."
    )
