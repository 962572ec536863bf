"""
Registration store: durable registrant records.

Uniqueness by email is enforced by the unique index on lower(email), not
by the caller's existence check. Any lookup before an insert is only a fast
path for a friendlier error; the IntegrityError raised at flush time is
the authority and is mapped to DuplicateEmail here.
"""

from typing import Any, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from event_registration.core.exceptions import DuplicateEmail, NotFound
from event_registration.core.logging import get_logger
from event_registration.db.base import utcnow
from event_registration.db.session import translate_storage_errors
from event_registration.models.registration import EMAIL_UNIQUE_INDEX, Registration

logger = get_logger(__name__)

EDITABLE_FIELDS = ("first_name", "last_name", "title", "program", "email", "region", "status")


def normalize_email(email: str) -> str:
    return email.strip()


def _is_duplicate_email(exc: IntegrityError) -> bool:
    return EMAIL_UNIQUE_INDEX in str(exc.orig)


@translate_storage_errors("registration_insert")
async def insert(db: AsyncSession, fields: Mapping[str, Any], status: str) -> Registration:
    email = normalize_email(fields["email"])
    registration = Registration(
        first_name=fields["first_name"],
        last_name=fields["last_name"],
        title=fields["title"],
        program=fields["program"],
        email=email,
        region=fields["region"],
        status=status,
    )
    db.add(registration)
    try:
        await db.flush()
    except IntegrityError as e:
        if _is_duplicate_email(e):
            logger.warning("registration_insert_duplicate", email=email)
            raise DuplicateEmail(email) from e
        raise
    await db.refresh(registration)
    return registration


@translate_storage_errors("registration_read")
async def find_by_id(
    db: AsyncSession,
    registration_id: int,
    for_update: bool = False,
) -> Registration:
    query = (
        select(Registration)
        .where(Registration.id == registration_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        # Row lock on PostgreSQL; SQLite serialises writers on its own
        query = query.with_for_update()
    result = await db.execute(query)
    registration = result.scalar_one_or_none()
    if registration is None:
        raise NotFound(registration_id)
    return registration


@translate_storage_errors("registration_read")
async def find_by_email(db: AsyncSession, email: str) -> Optional[Registration]:
    """Case-insensitive lookup; surrounding whitespace is ignored."""
    result = await db.execute(
        select(Registration)
        .where(func.lower(Registration.email) == normalize_email(email).lower())
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@translate_storage_errors("registration_update")
async def update(db: AsyncSession, registration_id: int, changes: Mapping[str, Any]) -> Registration:
    """Apply recognised fields only; anything else in `changes` is ignored."""
    registration = await find_by_id(db, registration_id)

    for field in EDITABLE_FIELDS:
        if field in changes and changes[field] is not None:
            value = changes[field]
            if field == "email":
                value = normalize_email(value)
            setattr(registration, field, value)
    registration.updated_at = utcnow()

    try:
        await db.flush()
    except IntegrityError as e:
        if _is_duplicate_email(e):
            raise DuplicateEmail(changes["email"]) from e
        raise
    await db.refresh(registration)
    return registration


@translate_storage_errors("registration_delete")
async def delete(db: AsyncSession, registration_id: int) -> None:
    registration = await find_by_id(db, registration_id)
    await db.delete(registration)
    await db.flush()


@translate_storage_errors("registration_read")
async def list_all(db: AsyncSession) -> list[Registration]:
    """Newest first. Each call runs a fresh query."""
    result = await db.execute(
        select(Registration)
        .order_by(Registration.created_at.desc(), Registration.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@translate_storage_errors("registration_read")
async def list_by_region(db: AsyncSession, region: str) -> list[Registration]:
    result = await db.execute(
        select(Registration)
        .where(Registration.region == region)
        .order_by(Registration.created_at.desc(), Registration.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@translate_storage_errors("registration_read")
async def count_by_region_and_status(db: AsyncSession) -> dict[tuple[str, str], int]:
    """Map of (region, status) -> number of registrations."""
    result = await db.execute(
        select(Registration.region, Registration.status, func.count())
        .group_by(Registration.region, Registration.status)
    )
    return {(region, status): count for region, status, count in result.all()}
