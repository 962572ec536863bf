"""
Registration workflow: keeps the capacity ledger and the registration
store consistent through every submission and admin change.

Invariant: for every region R, region_capacity(R).confirmed_count equals
the number of confirmed registrations in R.

TRANSACTION MODEL
=================

Each public function is one transition and one database transaction.
Ledger statements run first (claim before the record is written, release
before the record is demoted/deleted), the store statements follow in the
same session, and the commit publishes both at once. A reader therefore
sees the world before or after a transition, never a confirmed record
without its seat.

Transitions:
  submit                     claim -> insert(confirmed) | insert(waiting_list)
  confirmed -> waiting_list  release(region) -> update
  waiting_list -> confirmed  claim(region) or CapacityExceeded -> update
  confirmed, region A -> B   claim(B) or CapacityExceeded -> release(A) -> update
  delete                     release(region) if confirmed -> delete
  field edits                update only

Failure handling:
  Any error rolls the transaction back. For a submission whose insert
  fails after a successful claim, the rollback is the compensating
  release; if the rollback itself fails it is logged and counted, never
  retried (a retry loop could hand the seat back twice).

Registration rows are read FOR UPDATE before a transition so two admins
changing the same record are applied one after the other.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from event_registration.core.config import get_settings
from event_registration.core.exceptions import (
    CapacityExceeded,
    DuplicateEmail,
    InvalidStatus,
    UnknownRegion,
)
from event_registration.core.logging import get_logger
from event_registration.core.metrics import (
    compensation_failures,
    record_transition,
    submissions,
    workflow_latency,
)
from event_registration.db.session import translate_storage_errors
from event_registration.models.capacity import RegionCapacity
from event_registration.models.registration import (
    REGISTRATION_STATUSES,
    STATUS_CONFIRMED,
    STATUS_WAITING_LIST,
    Registration,
)
from event_registration.services import capacity_ledger, registration_store
from event_registration.services.schedule_service import ensure_registration_open

logger = get_logger(__name__)


def _require_region(region: str) -> None:
    if region not in get_settings().REGIONS:
        raise UnknownRegion(region)


@translate_storage_errors("commit")
async def _commit(db: AsyncSession) -> None:
    await db.commit()


async def _rollback(db: AsyncSession, operation: str) -> bool:
    try:
        await db.rollback()
    except (SQLAlchemyError, OSError) as e:
        logger.error("rollback_failed", operation=operation, error=str(e))
        return False
    return True


@asynccontextmanager
async def _transition(db: AsyncSession, operation: str):
    """Commit on success, roll back and record the outcome on failure."""
    start = time.perf_counter()
    try:
        yield
        await _commit(db)
    except HTTPException as e:
        await _rollback(db, operation)
        record_transition(operation, "rejected" if e.status_code < 500 else "error")
        raise
    except Exception:
        await _rollback(db, operation)
        record_transition(operation, "error")
        raise
    else:
        record_transition(operation, "ok")
    finally:
        workflow_latency.labels(operation=operation).observe(time.perf_counter() - start)


async def _compensate_claim(db: AsyncSession, region: str) -> None:
    """
    Hand back a seat whose registration never landed. The claim is still
    uncommitted, so rolling the transaction back releases it.
    """
    if await _rollback(db, "submit"):
        logger.info("claim_compensated", region=region)
    else:
        compensation_failures.inc()
        logger.error("claim_compensation_failed", region=region)


async def submit(db: AsyncSession, data: Mapping[str, Any]) -> Registration:
    """
    Register one person. The returned record's status says whether a
    confirmed seat was claimed or the registrant went to the waiting list.
    """
    ensure_registration_open()
    region = data["region"]
    _require_region(region)
    start = time.perf_counter()

    # Fast path for a friendly error; the unique index is the real guard
    if await registration_store.find_by_email(db, data["email"]) is not None:
        await _rollback(db, "submit")
        record_transition("submit", "rejected")
        logger.warning("registration_duplicate_email", region=region)
        raise DuplicateEmail(data["email"])

    claimed = False
    try:
        claimed = await capacity_ledger.claim(db, region)
        status = STATUS_CONFIRMED if claimed else STATUS_WAITING_LIST
        registration = await registration_store.insert(db, data, status)
        await _commit(db)
    except Exception as e:
        if claimed:
            await _compensate_claim(db, region)
        else:
            await _rollback(db, "submit")
        outcome = "rejected" if isinstance(e, HTTPException) and e.status_code < 500 else "error"
        record_transition("submit", outcome)
        raise
    finally:
        workflow_latency.labels(operation="submit").observe(time.perf_counter() - start)

    record_transition("submit", "ok")
    submissions.labels(region=region, status=status).inc()
    logger.info(
        "registration_submitted",
        registration_id=registration.id,
        region=region,
        status=status,
    )
    return registration


async def _reconcile_capacity(
    db: AsyncSession,
    old_status: str,
    old_region: str,
    new_status: str,
    new_region: str,
) -> None:
    if old_status == STATUS_CONFIRMED and new_status == STATUS_WAITING_LIST:
        await capacity_ledger.release(db, old_region)
    elif old_status == STATUS_WAITING_LIST and new_status == STATUS_CONFIRMED:
        if not await capacity_ledger.claim(db, new_region):
            raise CapacityExceeded(new_region)
    elif old_status == STATUS_CONFIRMED and old_region != new_region:
        # Claim the destination first so a full region leaves everything as it was
        if not await capacity_ledger.claim(db, new_region):
            raise CapacityExceeded(new_region)
        await capacity_ledger.release(db, old_region)


async def update_registration(
    db: AsyncSession,
    registration_id: int,
    changes: Mapping[str, Any],
    operation: str = "update",
) -> Registration:
    """
    Admin edit. Status and region changes reconcile the ledger before the
    record is written; plain field edits only touch the store.

    A rejected edit rolls back `db`, which expires every ORM object the
    caller loaded through it. Keep ids in locals before calling.
    """
    changes = {
        field: value
        for field, value in changes.items()
        if field in registration_store.EDITABLE_FIELDS and value is not None
    }
    if "region" in changes:
        _require_region(changes["region"])
    if "status" in changes and changes["status"] not in REGISTRATION_STATUSES:
        raise InvalidStatus(changes["status"])

    async with _transition(db, operation):
        current = await registration_store.find_by_id(db, registration_id, for_update=True)
        old_status, old_region = current.status, current.region
        new_status = changes.get("status", old_status)
        new_region = changes.get("region", old_region)

        await _reconcile_capacity(db, old_status, old_region, new_status, new_region)
        registration = await registration_store.update(db, registration_id, changes)

    if new_status != old_status:
        logger.info(
            "registration_status_changed",
            registration_id=registration_id,
            region=new_region,
            old_status=old_status,
            new_status=new_status,
        )
    if new_region != old_region:
        logger.info(
            "registration_moved",
            registration_id=registration_id,
            old_region=old_region,
            new_region=new_region,
            status=new_status,
        )
    if new_status == old_status and new_region == old_region:
        logger.info("registration_updated", registration_id=registration_id, fields=sorted(changes))
    return registration


async def change_status(db: AsyncSession, registration_id: int, new_status: str) -> Registration:
    """
    Promote from or demote to the waiting list. On CapacityExceeded the
    session is rolled back and objects loaded through it are expired.
    """
    return await update_registration(
        db, registration_id, {"status": new_status}, operation="change_status"
    )


async def change_region(db: AsyncSession, registration_id: int, new_region: str) -> Registration:
    """Move a registration; a confirmed one must find a seat in the new region."""
    return await update_registration(
        db, registration_id, {"region": new_region}, operation="change_region"
    )


async def delete_registration(db: AsyncSession, registration_id: int) -> None:
    async with _transition(db, "delete"):
        registration = await registration_store.find_by_id(db, registration_id, for_update=True)
        region, status = registration.region, registration.status
        if status == STATUS_CONFIRMED:
            await capacity_ledger.release(db, region)
        await registration_store.delete(db, registration_id)

    logger.info("registration_deleted", registration_id=registration_id, region=region, status=status)


async def set_capacity(db: AsyncSession, region: str, new_max: int) -> RegionCapacity:
    _require_region(region)
    async with _transition(db, "set_capacity"):
        capacity = await capacity_ledger.set_max(db, region, new_max)
    return capacity


async def list_counts(db: AsyncSession, region: Optional[str] = None) -> list[dict]:
    """
    Per-region {region, confirmed_count, waiting_list_count, max_capacity}.
    confirmed_count is the ledger's value; a mismatch with the records is
    logged as drift for manual reconciliation.
    """
    settings = get_settings()
    if region:
        _require_region(region)
    regions = [region] if region else settings.REGIONS
    capacities = {c.region: c for c in await capacity_ledger.list_capacities(db)}
    counts = await registration_store.count_by_region_and_status(db)

    summary = []
    for name in regions:
        confirmed_records = counts.get((name, STATUS_CONFIRMED), 0)
        capacity = capacities.get(name)
        if capacity is None:
            confirmed, max_capacity = confirmed_records, settings.DEFAULT_REGION_CAPACITY
        else:
            confirmed, max_capacity = capacity.confirmed_count, capacity.max_capacity
            if confirmed != confirmed_records:
                logger.warning(
                    "ledger_drift_detected",
                    region=name,
                    ledger_count=confirmed,
                    confirmed_records=confirmed_records,
                )
        summary.append(
            {
                "region": name,
                "confirmed_count": confirmed,
                "waiting_list_count": counts.get((name, STATUS_WAITING_LIST), 0),
                "max_capacity": max_capacity,
            }
        )
    return summary
