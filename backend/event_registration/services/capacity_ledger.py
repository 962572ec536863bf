"""
Capacity ledger: per-region counters of confirmed seats.

CONCURRENCY STRATEGY: Conditional UPDATE
========================================

Problem:
  Two submissions race for the last confirmed seat in a region.
  Both read confirmed_count=29 (max 30), both write 30.
  Result: 31 confirmed registrations, one lost update.

Solution:
  The bound check and the increment are a single statement:

    UPDATE region_capacity
       SET confirmed_count = confirmed_count + 1
     WHERE region = :region AND confirmed_count < max_capacity

  rows_affected == 1 means the seat was claimed, 0 means the region is full.
  The database serialises writers on the row, and the WHERE clause is
  re-evaluated against the latest committed row, so N concurrent claims
  against K free seats produce exactly min(N, K) successes.

  Release and set_max follow the same pattern (guarded decrement, guarded
  max change), so no caller ever reads the counter and writes it back.
  CHECK constraints on the table are the final safety net.

All functions run inside the caller's session and the workflow decides
when the transaction commits. The exception is ensure_initialized, a
startup step with no workflow around it: it commits its own inserts.
"""

from typing import Iterable

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from event_registration.core.exceptions import InvalidCapacity, UnknownRegion
from event_registration.core.logging import get_logger
from event_registration.core.metrics import record_claim, record_release
from event_registration.db.session import translate_storage_errors
from event_registration.models.capacity import RegionCapacity

logger = get_logger(__name__)


@translate_storage_errors("capacity_claim")
async def claim(db: AsyncSession, region: str) -> bool:
    """Atomically take one confirmed seat if the region is under its max."""
    result = await db.execute(
        update(RegionCapacity)
        .where(
            RegionCapacity.region == region,
            RegionCapacity.confirmed_count < RegionCapacity.max_capacity,
        )
        .values(confirmed_count=RegionCapacity.confirmed_count + 1)
        .execution_options(synchronize_session=False)
    )
    claimed = result.rowcount == 1
    record_claim(region, claimed)

    if claimed:
        logger.info("capacity_claimed", region=region)
    else:
        logger.info("capacity_claim_rejected", region=region)
    return claimed


@translate_storage_errors("capacity_release")
async def release(db: AsyncSession, region: str) -> None:
    """
    Give one confirmed seat back.
    Never goes below zero: releasing an empty counter is logged and ignored.
    """
    result = await db.execute(
        update(RegionCapacity)
        .where(RegionCapacity.region == region, RegionCapacity.confirmed_count > 0)
        .values(confirmed_count=RegionCapacity.confirmed_count - 1)
        .execution_options(synchronize_session=False)
    )
    released = result.rowcount == 1
    record_release(region, released)

    if released:
        logger.info("capacity_released", region=region)
    else:
        logger.warning("release_below_zero_ignored", region=region)


@translate_storage_errors("capacity_set_max")
async def set_max(db: AsyncSession, region: str, new_max: int) -> RegionCapacity:
    """
    Change a region's max. The comparison against the live confirmed count
    happens in the same statement as the write, so a concurrent claim can
    never leave confirmed_count above the new max.
    """
    result = await db.execute(
        update(RegionCapacity)
        .where(
            RegionCapacity.region == region,
            RegionCapacity.confirmed_count <= new_max,
        )
        .values(max_capacity=new_max)
        .execution_options(synchronize_session=False)
    )
    capacity = await get_capacity(db, region)

    if result.rowcount != 1:
        logger.warning(
            "capacity_update_rejected",
            region=region,
            requested=new_max,
            confirmed=capacity.confirmed_count,
        )
        raise InvalidCapacity(region, new_max, capacity.confirmed_count)

    logger.info("capacity_updated", region=region, max_capacity=new_max)
    return capacity


@translate_storage_errors("capacity_read")
async def get_capacity(db: AsyncSession, region: str) -> RegionCapacity:
    result = await db.execute(
        select(RegionCapacity)
        .where(RegionCapacity.region == region)
        .execution_options(populate_existing=True)
    )
    capacity = result.scalar_one_or_none()
    if capacity is None:
        raise UnknownRegion(region)
    return capacity


@translate_storage_errors("capacity_read")
async def list_capacities(db: AsyncSession) -> list[RegionCapacity]:
    result = await db.execute(
        select(RegionCapacity)
        .order_by(RegionCapacity.region)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def _insert_ignoring_existing(dialect_name: str, rows: list[dict]):
    if dialect_name == "postgresql":
        return postgresql.insert(RegionCapacity).values(rows).on_conflict_do_nothing(
            index_elements=["region"]
        )
    if dialect_name == "sqlite":
        return sqlite.insert(RegionCapacity).values(rows).on_conflict_do_nothing(
            index_elements=["region"]
        )
    return None


@translate_storage_errors("capacity_initialize")
async def ensure_initialized(
    db: AsyncSession,
    regions: Iterable[str],
    default_max: int,
) -> int:
    """
    Create a zero-count ledger row for every region that lacks one.
    Existing rows are never touched. Returns the number of rows created.
    Commits the session; several processes may run this at once on startup.
    """
    rows = [
        {"region": region, "confirmed_count": 0, "max_capacity": default_max}
        for region in regions
    ]
    if not rows:
        return 0

    stmt = _insert_ignoring_existing(db.get_bind().dialect.name, rows)
    if stmt is not None:
        result = await db.execute(stmt)
        created = max(result.rowcount, 0)
    else:
        existing = set((await db.execute(select(RegionCapacity.region))).scalars().all())
        missing = [row for row in rows if row["region"] not in existing]
        if missing:
            await db.execute(insert(RegionCapacity), missing)
        created = len(missing)

    await db.commit()
    logger.info("capacity_ledger_initialized", regions=len(rows), created=created)
    return created
