"""
Admin endpoints: roster, edits, deletes and per-region capacity.
All routes require the admin shared secret when one is configured.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_registration.core.logging import bind_registration_context, get_logger
from event_registration.core.security import require_admin
from event_registration.db.session import get_db
from event_registration.schemas.capacity import (
    CapacityListResponse,
    CapacityUpdate,
    CapacityUpdateResponse,
    RosterResponse,
)
from event_registration.schemas.registration import (
    RegistrationDeleteResponse,
    RegistrationResponse,
    RegistrationUpdate,
)
from event_registration.services import registration_store
from event_registration.services.cache_service import (
    get_cached_counts,
    invalidate_counts_cache,
    set_cached_counts,
)
from event_registration.services.registration_workflow import (
    delete_registration,
    list_counts,
    set_capacity,
    update_registration,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/registrations/", response_model=RosterResponse)
async def list_registrations(
    region: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Roster, newest first, with per-region counts. Optionally one region only."""
    counts = await list_counts(db, region)
    if region:
        registrations = await registration_store.list_by_region(db, region)
    else:
        registrations = await registration_store.list_all(db)
    return RosterResponse(
        registrations=[RegistrationResponse.model_validate(r) for r in registrations],
        counts=counts,
    )


@router.get("/registrations/{registration_id}", response_model=RegistrationResponse)
async def get_registration(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await registration_store.find_by_id(db, registration_id)


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
async def edit_registration(
    registration_id: int,
    data: RegistrationUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Edit a registration.

    Changing status or region re-balances the region counters: promoting
    or moving a confirmed registration needs a free seat in the target
    region and returns 409 when there is none.
    """
    bind_registration_context(registration_id=registration_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid updates",
        )
    registration = await update_registration(db, registration_id, changes)
    await invalidate_counts_cache()
    return registration


@router.delete("/registrations/{registration_id}", response_model=RegistrationDeleteResponse)
async def remove_registration(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a registration, freeing its seat if it was confirmed."""
    bind_registration_context(registration_id=registration_id)
    await delete_registration(db, registration_id)
    await invalidate_counts_cache()
    return RegistrationDeleteResponse(
        message="Registration deleted",
        registration_id=registration_id,
    )


@router.get("/capacity/", response_model=CapacityListResponse)
async def capacity_overview(db: AsyncSession = Depends(get_db)):
    """
    Confirmed, waiting-list and max counts per region.
    Cached in Redis briefly; every roster change invalidates the cache.
    """
    cached = await get_cached_counts()
    if cached is not None:
        logger.info("capacity_counts_cache_hit")
        return CapacityListResponse(counts=cached, cached=True)

    counts = await list_counts(db)
    await set_cached_counts(counts)
    return CapacityListResponse(counts=counts, cached=False)


@router.patch("/capacity/", response_model=CapacityUpdateResponse)
async def update_capacity(
    data: CapacityUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Change a region's max. Refused when below the current confirmed count."""
    capacity = await set_capacity(db, data.region, data.max_capacity)
    await invalidate_counts_cache()
    return capacity
