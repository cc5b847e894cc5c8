"""
Tests de integración de la API de grupos (FastAPI + httpx.ASGITransport).
"""
import httpx
import pytest
import pytest_asyncio

from fleetgroups.dependencies import get_db, get_session_factory
from fleetgroups.main import app
from fleetgroups.services import notifier


@pytest_asyncio.fixture
async def client(session, session_factory, monkeypatch):
    async def _get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    monkeypatch.setattr(notifier, "get_command_dispatcher", lambda: None)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_create_group(client):
    response = await client.post("/api/v1/groups/", json={"name": "Canary", "application_id": 1})
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Canary"
    assert body["application_id"] == 1
    assert body["devices"] == []


@pytest.mark.asyncio
async def test_create_group_unknown_application(client):
    response = await client.post("/api/v1/groups/", json={"name": "Canary", "application_id": 99})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_groups_by_application(client):
    response = await client.get("/api/v1/groups/", params={"application_id": 1})
    assert response.status_code == 200
    assert [g["name"] for g in response.json()] == ["G", "Other"]


@pytest.mark.asyncio
async def test_read_group_with_devices(client):
    response = await client.get("/api/v1/groups/1")
    assert response.status_code == 200
    assert [d["id"] for d in response.json()["devices"]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_read_missing_group(client):
    response = await client.get("/api/v1/groups/999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_partial_update(client):
    response = await client.put("/api/v1/groups/1", json={"description": "edge fleet"})
    assert response.status_code == 200
    assert response.json()["name"] == "G"
    assert response.json()["description"] == "edge fleet"


@pytest.mark.asyncio
async def test_set_devices(client):
    response = await client.patch("/api/v1/groups/1/devices", json={"set_devices": [2, 3, 4]})
    assert response.status_code == 200
    assert response.json() == {"added": [4], "removed": [1]}

    response = await client.get("/api/v1/groups/1")
    assert [d["id"] for d in response.json()["devices"]] == [2, 3, 4]


@pytest.mark.asyncio
async def test_membership_validation_error(client):
    response = await client.patch("/api/v1/groups/1/devices", json={"add_devices": [5]})
    assert response.status_code == 400
    assert response.json()["detail"] == {
        "code": "invalid_input",
        "error": "One or more devices cannot be added to the group",
    }

    response = await client.get("/api/v1/groups/1")
    assert [d["id"] for d in response.json()["devices"]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_empty_membership_request(client):
    response = await client.patch("/api/v1/groups/1/devices", json={})
    assert response.status_code == 200
    assert response.json() == {"added": [], "removed": []}


@pytest.mark.asyncio
async def test_update_command_disabled_messaging(client):
    response = await client.post("/api/v1/groups/1/update-command")
    assert response.status_code == 200
    assert response.json() == {"sent": 0}
