"""
Tests for the admin endpoints: roster, edits, deletes and capacity.
"""

import pytest
from httpx import AsyncClient


async def submit(client: AsyncClient, form: dict) -> dict:
    response = await client.post("/api/v1/registrations/", json=form)
    assert response.status_code == 201
    return response.json()["registration"]


async def brooklyn_counts(client: AsyncClient, admin_headers: dict) -> dict:
    response = await client.get("/api/v1/admin/capacity/", headers=admin_headers)
    assert response.status_code == 200
    return next(c for c in response.json()["counts"] if c["region"] == "Brooklyn")


@pytest.mark.asyncio
async def test_admin_requires_secret(client: AsyncClient):
    """Missing or wrong secret returns 401."""
    assert (await client.get("/api/v1/admin/registrations/")).status_code == 401
    response = await client.get(
        "/api/v1/admin/registrations/", headers={"X-Admin-Secret": "wrong"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_secret_in_query(client: AsyncClient, admin_headers):
    response = await client.get(
        "/api/v1/admin/capacity/", params={"secret": admin_headers["X-Admin-Secret"]}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_open_when_secret_unset(client: AsyncClient, settings, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_SECRET", None)
    assert (await client.get("/api/v1/admin/capacity/")).status_code == 200


@pytest.mark.asyncio
async def test_roster_lists_newest_first_with_counts(client: AsyncClient, admin_headers, make_registration):
    first = await submit(client, make_registration("Bronx"))
    second = await submit(client, make_registration("Queens"))

    response = await client.get("/api/v1/admin/registrations/", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert [r["id"] for r in data["registrations"]] == [second["id"], first["id"]]

    bronx = next(c for c in data["counts"] if c["region"] == "Bronx")
    assert bronx["confirmed_count"] == 1
    assert bronx["waiting_list_count"] == 0


@pytest.mark.asyncio
async def test_roster_filtered_by_region(client: AsyncClient, admin_headers, make_registration):
    bronx = await submit(client, make_registration("Bronx"))
    await submit(client, make_registration("Queens"))

    response = await client.get(
        "/api/v1/admin/registrations/", params={"region": "Bronx"}, headers=admin_headers
    )
    data = response.json()
    assert [r["id"] for r in data["registrations"]] == [bronx["id"]]
    assert [c["region"] for c in data["counts"]] == ["Bronx"]


@pytest.mark.asyncio
async def test_roster_unknown_region(client: AsyncClient, admin_headers):
    response = await client.get(
        "/api/v1/admin/registrations/", params={"region": "Atlantis"}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_registration(client: AsyncClient, admin_headers, make_registration):
    created = await submit(client, make_registration())
    response = await client.get(f"/api/v1/admin/registrations/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["email"] == created["email"]

    missing = await client.get("/api/v1/admin/registrations/99999", headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_promote_when_full_returns_409(client: AsyncClient, admin_headers, set_max, make_registration):
    await set_max("Brooklyn", 1)
    await submit(client, make_registration("Brooklyn"))
    waiting = await submit(client, make_registration("Brooklyn"))
    assert waiting["status"] == "waiting_list"

    response = await client.patch(
        f"/api/v1/admin/registrations/{waiting['id']}",
        json={"status": "confirmed"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert (await brooklyn_counts(client, admin_headers))["confirmed_count"] == 1


@pytest.mark.asyncio
async def test_demote_then_promote(client: AsyncClient, admin_headers, set_max, make_registration):
    await set_max("Brooklyn", 1)
    confirmed = await submit(client, make_registration("Brooklyn"))
    waiting = await submit(client, make_registration("Brooklyn"))

    demote = await client.patch(
        f"/api/v1/admin/registrations/{confirmed['id']}",
        json={"status": "waiting_list"},
        headers=admin_headers,
    )
    assert demote.status_code == 200
    assert demote.json()["status"] == "waiting_list"

    promote = await client.patch(
        f"/api/v1/admin/registrations/{waiting['id']}",
        json={"status": "confirmed"},
        headers=admin_headers,
    )
    assert promote.status_code == 200

    counts = await brooklyn_counts(client, admin_headers)
    assert counts["confirmed_count"] == 1
    assert counts["waiting_list_count"] == 1


@pytest.mark.asyncio
async def test_edit_fields(client: AsyncClient, admin_headers, make_registration):
    created = await submit(client, make_registration())
    response = await client.patch(
        f"/api/v1/admin/registrations/{created['id']}",
        json={"title": "Assistant Principal", "last_name": "Reyes"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Assistant Principal"
    assert data["last_name"] == "Reyes"
    assert data["status"] == created["status"]


@pytest.mark.asyncio
async def test_edit_with_no_changes(client: AsyncClient, admin_headers, make_registration):
    created = await submit(client, make_registration())
    response = await client.patch(
        f"/api/v1/admin/registrations/{created['id']}", json={}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid updates"


@pytest.mark.asyncio
async def test_edit_invalid_status_or_region(client: AsyncClient, admin_headers, make_registration):
    created = await submit(client, make_registration())
    bad_status = await client.patch(
        f"/api/v1/admin/registrations/{created['id']}", json={"status": "vip"}, headers=admin_headers
    )
    assert bad_status.status_code == 422

    bad_region = await client.patch(
        f"/api/v1/admin/registrations/{created['id']}", json={"region": "Atlantis"}, headers=admin_headers
    )
    assert bad_region.status_code == 422


@pytest.mark.asyncio
async def test_edit_duplicate_email(client: AsyncClient, admin_headers, make_registration):
    await submit(client, make_registration(email="kim@borough.org"))
    other = await submit(client, make_registration())

    response = await client.patch(
        f"/api/v1/admin/registrations/{other['id']}",
        json={"email": "Kim@borough.org"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_edit_missing_registration(client: AsyncClient, admin_headers):
    response = await client.patch(
        "/api/v1/admin/registrations/99999", json={"title": "Dean"}, headers=admin_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_move_region(client: AsyncClient, admin_headers, make_registration):
    created = await submit(client, make_registration("Bronx"))
    response = await client.patch(
        f"/api/v1/admin/registrations/{created['id']}",
        json={"region": "Staten Island"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["region"] == "Staten Island"

    counts = (await client.get("/api/v1/admin/capacity/", headers=admin_headers)).json()["counts"]
    by_region = {c["region"]: c["confirmed_count"] for c in counts}
    assert by_region["Bronx"] == 0
    assert by_region["Staten Island"] == 1


@pytest.mark.asyncio
async def test_delete_registration(client: AsyncClient, admin_headers, make_registration):
    created = await submit(client, make_registration("Brooklyn"))

    response = await client.delete(
        f"/api/v1/admin/registrations/{created['id']}", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Registration deleted", "registration_id": created["id"]}
    assert (await brooklyn_counts(client, admin_headers))["confirmed_count"] == 0

    again = await client.delete(
        f"/api/v1/admin/registrations/{created['id']}", headers=admin_headers
    )
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_update_capacity(client: AsyncClient, admin_headers):
    response = await client.patch(
        "/api/v1/admin/capacity/",
        json={"region": "Manhattan", "max_capacity": 45},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"region": "Manhattan", "confirmed_count": 0, "max_capacity": 45}


@pytest.mark.asyncio
async def test_update_capacity_below_confirmed(client: AsyncClient, admin_headers, set_max, make_registration):
    await set_max("Brooklyn", 2)
    await submit(client, make_registration("Brooklyn"))
    await submit(client, make_registration("Brooklyn"))

    response = await client.patch(
        "/api/v1/admin/capacity/",
        json={"region": "Brooklyn", "max_capacity": 1},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert (await brooklyn_counts(client, admin_headers))["max_capacity"] == 2


@pytest.mark.asyncio
async def test_update_capacity_validation(client: AsyncClient, admin_headers):
    negative = await client.patch(
        "/api/v1/admin/capacity/",
        json={"region": "Brooklyn", "max_capacity": -1},
        headers=admin_headers,
    )
    assert negative.status_code == 422

    unknown = await client.patch(
        "/api/v1/admin/capacity/",
        json={"region": "Atlantis", "max_capacity": 10},
        headers=admin_headers,
    )
    assert unknown.status_code == 400


@pytest.mark.asyncio
async def test_capacity_overview_lists_every_region(client: AsyncClient, admin_headers, settings):
    response = await client.get("/api/v1/admin/capacity/", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["cached"] is False
    assert [c["region"] for c in data["counts"]] == settings.REGIONS
    assert all(c["max_capacity"] == settings.DEFAULT_REGION_CAPACITY for c in data["counts"])
