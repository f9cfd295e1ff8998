"""Edge cases: degraded mode without a database, malformed bodies, odd verbs."""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from bestcity_api.config import Settings
from bestcity_api.main import create_app
from bestcity_api.utils.metrics import NotesMetrics

NOTES_URL = "/api/v1/notes"


@pytest.fixture
async def degraded_client(tmp_path):
    """App whose database URL is not configured."""
    settings = Settings(
        _env_file=None,
        database_url=None,
        disable_file_logging=True,
        log_dir=str(tmp_path / "logs"),
    )
    metrics = NotesMetrics()
    app = create_app(settings, metrics=metrics)
    await app.state.database.connect()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac, metrics


class TestWithoutDatabase:
    async def test_health_reports_disconnected(self, degraded_client):
        client, _ = degraded_client
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "disconnected"

    async def test_status_gauge_is_zero(self, degraded_client):
        _, metrics = degraded_client
        assert metrics.registry.get_sample_value("bestcity_db_connection_status") == 0

    async def test_create_fails_with_store_error(self, degraded_client):
        client, metrics = degraded_client
        response = await client.post(NOTES_URL, json={"title": "A", "content": "B"})
        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Error creating note",
            "error": "Database is not configured",
        }
        assert metrics.registry.get_sample_value(
            "bestcity_errors_total", {"type": "store", "route": "/notes"}
        ) == 1

    async def test_list_fails_with_store_error(self, degraded_client):
        client, _ = degraded_client
        response = await client.get(NOTES_URL)
        assert response.status_code == 500
        assert response.json()["message"] == "Error retrieving notes"

    async def test_validation_still_answers_400(self, degraded_client):
        client, _ = degraded_client
        response = await client.post(NOTES_URL, json={"title": "A"})
        assert response.status_code == 400

    async def test_metrics_endpoint_still_served(self, degraded_client):
        client, _ = degraded_client
        response = await client.get("/metrics")
        assert response.status_code == 200


class TestDatabaseComingUpLater:
    async def test_requests_succeed_once_store_is_reachable(self, tmp_path):
        db_dir = tmp_path / "late"
        settings = Settings(
            _env_file=None,
            database_url=f"sqlite+aiosqlite:///{db_dir / 'notes.db'}",
            disable_file_logging=True,
            log_dir=str(tmp_path / "logs"),
        )
        app = create_app(settings, metrics=NotesMetrics())
        await app.state.database.connect()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/health")).json()["database"] == "disconnected"

            db_dir.mkdir()
            response = await client.post(NOTES_URL, json={"title": "A", "content": "B"})
            assert response.status_code == 201

            listing = (await client.get(NOTES_URL)).json()
            assert listing["count"] == 1
            assert (await client.get("/health")).json()["database"] == "connected"
        await app.state.database.dispose()


class TestRequestBodies:
    async def test_invalid_json_returns_400(self, client):
        response = await client.post(
            NOTES_URL,
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Invalid request body"

    async def test_non_string_title_returns_400(self, client):
        response = await client.post(NOTES_URL, json={"title": ["a"], "content": "B"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request body"

    async def test_unknown_fields_are_ignored(self, client):
        response = await client.post(
            NOTES_URL, json={"title": "A", "content": "B", "id": "forged", "owner": 1}
        )
        assert response.status_code == 201
        assert response.json()["data"]["id"] != "forged"

    async def test_empty_update_only_touches_timestamp(self, client):
        created = (
            await client.post(NOTES_URL, json={"title": "A", "content": "B"})
        ).json()["data"]

        response = await client.put(f"{NOTES_URL}/{created['id']}", json={})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "A"
        assert data["content"] == "B"
        assert data["updatedAt"] >= created["updatedAt"]

    async def test_null_title_on_update_returns_400(self, client):
        created = (
            await client.post(NOTES_URL, json={"title": "A", "content": "B"})
        ).json()["data"]

        response = await client.put(f"{NOTES_URL}/{created['id']}", json={"title": None})
        assert response.status_code == 400
        assert response.json()["message"] == "Please enter note title"

    async def test_too_long_title_on_update_returns_400(self, client):
        created = (
            await client.post(NOTES_URL, json={"title": "A", "content": "B"})
        ).json()["data"]

        response = await client.put(
            f"{NOTES_URL}/{created['id']}", json={"title": "t" * 201}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Note title cannot exceed 200 characters"


class TestRouting:
    async def test_patch_is_not_routed(self, client):
        response = await client.patch(f"{NOTES_URL}/{uuid.uuid4()}", json={"title": "x"})
        assert response.status_code == 405

    async def test_unversioned_path_is_not_found(self, client):
        response = await client.get("/notes")
        assert response.status_code == 404

    async def test_not_found_counts_as_error(self, client, sample):
        await client.get(f"{NOTES_URL}/{uuid.uuid4()}")
        assert sample(
            "bestcity_errors_total", {"type": "not_found", "route": "/notes/{note_id}"}
        ) == 1
