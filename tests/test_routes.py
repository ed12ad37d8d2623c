"""Tests for the HTTP API."""

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from courier.app import create_app
from courier.config import Settings
from courier.errors import ProviderUnauthorizedError
from courier.services import AutoReplyService


@pytest.fixture
def provider():
    provider = MagicMock()
    provider.generate = AsyncMock(return_value="pong")
    return provider


@pytest.fixture
def app(provider):
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    application = create_app(settings)
    application.state.auto_reply = AutoReplyService(provider_factory=lambda config: provider)
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await app.state.scheduler.stop()


TASK_BODY = {
    "name": "Standup reminder",
    "cron_expr": "0 9 * * 1-5",
    "recipients": ["100"],
    "content": {"text": "Standup at {{time}}"},
}


class TestTaskRoutes:
    async def test_create_and_get(self, client):
        resp = await client.post("/api/tasks", json=TASK_BODY)
        assert resp.status_code == 201
        created = resp.json()
        assert created["status"] == "pending"
        assert created["kind"] == "message"
        assert created["is_active"] is True
        assert created["next_run"] is not None

        resp = await client.get(f"/api/tasks/{created['task_id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Standup reminder"

    async def test_list(self, client):
        await client.post("/api/tasks", json={**TASK_BODY, "task_id": "a"})
        await client.post("/api/tasks", json={**TASK_BODY, "task_id": "b"})

        resp = await client.get("/api/tasks")
        assert resp.status_code == 200
        assert sorted(t["task_id"] for t in resp.json()) == ["a", "b"]

    async def test_invalid_cron_is_422(self, client):
        resp = await client.post("/api/tasks", json={**TASK_BODY, "cron_expr": "every day"})
        assert resp.status_code == 422
        assert "invalid cron expression" in resp.json()["detail"]

    async def test_duplicate_id_is_409(self, client):
        await client.post("/api/tasks", json={**TASK_BODY, "task_id": "a"})
        resp = await client.post("/api/tasks", json={**TASK_BODY, "task_id": "a"})
        assert resp.status_code == 409

    async def test_unknown_task_is_404(self, client):
        assert (await client.get("/api/tasks/missing")).status_code == 404
        assert (await client.delete("/api/tasks/missing")).status_code == 404
        assert (await client.post("/api/tasks/missing/trigger")).status_code == 404
        assert (await client.put("/api/tasks/missing", json=TASK_BODY)).status_code == 404

    async def test_update(self, client):
        await client.post("/api/tasks", json={**TASK_BODY, "task_id": "a"})

        resp = await client.put(
            "/api/tasks/a",
            json={**TASK_BODY, "name": "Renamed", "cron_expr": "0 10 * * *", "is_active": False},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Renamed"
        assert body["is_active"] is False
        assert body["next_run"] is None

    async def test_delete_cancels(self, client):
        await client.post("/api/tasks", json={**TASK_BODY, "task_id": "a"})

        resp = await client.delete("/api/tasks/a")
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

        stats = (await client.get("/api/tasks/stats")).json()
        assert stats["total"] == 1
        assert stats["cancelled"] == 1
        assert stats["active"] == 0

    async def test_trigger_records_execution(self, client, app):
        await client.post("/api/tasks", json={**TASK_BODY, "task_id": "a"})

        resp = await client.post("/api/tasks/a/trigger")
        assert resp.status_code == 202
        await asyncio.gather(*list(app.state.scheduler._clock._firings))

        executions = (await client.get("/api/tasks/executions", params={"task_id": "a"})).json()
        assert len(executions) == 1
        # No chat transport is configured
        assert executions[0]["status"] == "failed"
        assert "not connected" in executions[0]["error"]


class TestAutoReplyRoutes:
    async def test_get_defaults(self, client):
        resp = await client.get("/api/auto-reply/config")
        assert resp.status_code == 200
        body = resp.json()
        assert body["enabled"] is False
        assert body["ai_provider"] == "openai"
        assert body["max_response_length"] == 500

    async def test_put_replaces_config(self, client):
        resp = await client.put(
            "/api/auto-reply/config",
            json={"enabled": True, "ai_provider": "ollama", "whitelist_numbers": ["1555"]},
        )
        assert resp.status_code == 200

        body = (await client.get("/api/auto-reply/config")).json()
        assert body["enabled"] is True
        assert body["ai_provider"] == "ollama"
        assert body["whitelist_numbers"] == ["1555"]
        assert body["response_delay"] == 2

    async def test_put_rejects_negative_delay(self, client):
        resp = await client.put("/api/auto-reply/config", json={"response_delay": -1})
        assert resp.status_code == 422

    async def test_whitelist_check(self, client):
        await client.put(
            "/api/auto-reply/config",
            json={"enabled": True, "whitelist_numbers": ["1555"]},
        )
        assert (await client.get("/api/auto-reply/whitelist/1555")).json() == {"whitelisted": True}
        assert (await client.get("/api/auto-reply/whitelist/1556")).json() == {"whitelisted": False}

    async def test_connection_ok(self, client, provider):
        resp = await client.post("/api/auto-reply/test")
        assert resp.json() == {"ok": True, "error": None}
        provider.generate.assert_awaited_once()

    async def test_connection_failure(self, client, provider):
        provider.generate = AsyncMock(side_effect=ProviderUnauthorizedError("invalid API key"))
        resp = await client.post("/api/auto-reply/test")
        assert resp.status_code == 200
        assert resp.json() == {"ok": False, "error": "invalid API key"}
