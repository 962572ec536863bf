"""
Tests for the storage error boundary: connectivity failures become a
retryable 503, constraint violations pass through.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from event_registration.core.exceptions import StorageUnavailable
from event_registration.db.session import translate_storage_errors
from event_registration.services import capacity_ledger, registration_store


@pytest.mark.asyncio
async def test_operational_error_becomes_storage_unavailable():
    @translate_storage_errors("roster_read")
    async def broken():
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("db down"))

    with pytest.raises(StorageUnavailable) as exc_info:
        await broken()
    assert exc_info.value.status_code == 503
    assert exc_info.value.operation == "roster_read"
    assert exc_info.value.headers["Retry-After"] == "5"


@pytest.mark.asyncio
async def test_deadlock_is_transient():
    @translate_storage_errors("roster_read")
    async def deadlocked():
        raise DBAPIError("UPDATE", {}, Exception("deadlock detected"))

    with pytest.raises(StorageUnavailable):
        await deadlocked()


@pytest.mark.asyncio
async def test_constraint_violation_passes_through():
    @translate_storage_errors("roster_read")
    async def violates():
        raise IntegrityError("INSERT", {}, Exception("CHECK constraint failed"))

    with pytest.raises(IntegrityError):
        await violates()


@pytest.mark.asyncio
async def test_submit_during_outage_returns_503(
    client: AsyncClient, db_session: AsyncSession, make_registration, monkeypatch
):
    @translate_storage_errors("capacity_claim")
    async def claim_down(db, region):
        raise OperationalError("UPDATE region_capacity", {}, ConnectionResetError("reset"))

    monkeypatch.setattr(capacity_ledger, "claim", claim_down)

    response = await client.post("/api/v1/registrations/", json=make_registration())
    assert response.status_code == 503
    assert response.headers["Retry-After"] == "5"

    assert await registration_store.list_all(db_session) == []
