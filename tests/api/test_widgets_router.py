from __future__ import annotations

import asyncio
import uuid

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from widget_access.api.fastapi.middleware.errors.catchall import CatchAllExceptionMiddleware
from widget_access.api.fastapi.middleware.errors.handlers import register_error_handlers
from widget_access.api.fastapi.middleware.timeout import HandlerTimeoutMiddleware
from widget_access.exceptions import TransactionFailure


@pytest.mark.asyncio
async def test_list_uses_viewer_header(client, seed):
    team = await seed.team()
    viewer = await seed.user(team=team)
    public = await seed.widget("Public")
    private = await seed.widget("Private", visibility="private")
    await seed.grant(private, team)

    anon = await client.get("/api/widgets")
    assert anon.status_code == 200
    assert [w["id"] for w in anon.json()] == [public.id]

    seen = await client.get("/api/widgets", headers={"X-Viewer-Id": str(viewer.id)})
    assert [w["id"] for w in seen.json()] == [public.id, private.id]
    body = seen.json()[0]
    assert {"developerIds", "categories", "redirectLink", "restrictedAccess"} <= set(body)


@pytest.mark.asyncio
async def test_garbage_viewer_header_is_anonymous(client, seed):
    public = await seed.widget("Public")
    r = await client.get("/api/widgets", headers={"X-Viewer-Id": "'; drop table widgets;--"})
    assert r.status_code == 200
    assert [w["id"] for w in r.json()] == [public.id]


@pytest.mark.asyncio
async def test_list_filters_from_query(client, seed):
    cat = await seed.category("Football")
    a = await seed.widget("Alpha")
    await seed.widget("Beta")
    c = await seed.widget("Gamma")
    await seed.tag(a, cat)
    await seed.tag(c, cat)

    r = await client.get("/api/widgets", params={"categories": [cat.id], "limit": 1, "page": 2})
    assert [w["id"] for w in r.json()] == [c.id]

    bad = await client.get("/api/widgets", params={"page": 0})
    assert bad.status_code == 422
    assert bad.headers["content-type"].startswith("application/problem+json")


@pytest.mark.asyncio
async def test_patch_cascade_and_not_found(client, seed):
    team = await seed.team()
    widget = await seed.widget("W", visibility="private")
    await seed.grant(widget, team)

    r = await client.patch(f"/api/widgets/{widget.id}", json={"visibility": "public"})
    assert r.status_code == 200
    assert r.json()["visibility"] == "public"
    teams = await client.get(f"/api/widgets/{widget.id}/teams")
    assert teams.json() == []

    missing = await client.patch("/api/widgets/9999", json={"name": "x"})
    assert missing.status_code == 404
    problem = missing.json()
    assert problem["code"] == "NOT_FOUND" and problem["status"] == 404


@pytest.mark.asyncio
async def test_patch_rejects_null_name(client, seed):
    widget = await seed.widget("W")
    r = await client.patch(f"/api/widgets/{widget.id}", json={"name": None})
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_transaction_failure_is_opaque(client, seed, monkeypatch):
    from widget_access.widgets.updater import WidgetUpdater

    widget = await seed.widget("W")

    async def fail(self, widget_id, patch):
        raise TransactionFailure("Failed to update widget")

    monkeypatch.setattr(WidgetUpdater, "update", fail)
    r = await client.patch(f"/api/widgets/{widget.id}", json={"name": "x"})
    assert r.status_code == 500
    assert r.json()["code"] == "TRANSACTION_FAILED"
    assert "errors" not in r.json()


@pytest.mark.asyncio
async def test_create_get_and_delete(client, seed):
    owner = await seed.user()
    team = await seed.team()

    r = await client.post(
        "/api/widgets/create",
        json={
            "name": "Scores",
            "description": "live",
            "visibility": "private",
            "selectedTeamIds": [str(team.id)],
            "userId": owner.id,
        },
    )
    assert r.status_code == 201
    created = r.json()
    assert created["status"] == "approved"
    assert created["developerIds"] == [owner.id]

    hidden = await client.get(f"/api/widgets/{created['id']}")
    assert hidden.status_code == 404
    shown = await client.get(
        f"/api/widgets/{created['id']}", headers={"X-Viewer-Id": str(owner.id)}
    )
    assert shown.status_code == 200

    teams = await client.get(f"/api/widgets/{created['id']}/teams")
    assert [t["id"] for t in teams.json()] == [str(team.id)]

    deleted = await client.delete(f"/api/widgets/{created['id']}")
    assert deleted.status_code == 204
    again = await client.delete(f"/api/widgets/{created['id']}")
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_team_endpoints(client, seed):
    team = await seed.team("Blue")
    widget = await seed.widget("W", visibility="private")

    r = await client.post(f"/api/widgets/{widget.id}/teams", json={"teamId": str(team.id)})
    assert r.status_code == 201
    assert r.json()["teamId"] == str(team.id)
    r = await client.post(f"/api/widgets/{widget.id}/teams", json={"teamId": str(team.id)})
    assert r.status_code == 201

    listed = await client.get(f"/api/widgets/{widget.id}/teams")
    assert listed.json() == [{"id": str(team.id), "name": "Blue"}]

    r = await client.delete(f"/api/widgets/{widget.id}/teams/{team.id}")
    assert r.status_code == 204
    r = await client.delete(f"/api/widgets/{widget.id}/teams/{team.id}")
    assert r.status_code == 404
    r = await client.post(f"/api/widgets/{widget.id}/teams", json={"teamId": str(uuid.uuid4())})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_developer_endpoints(client, seed):
    owner = await seed.user()
    member = await seed.user()
    widget = await seed.widget("W", owner=owner)

    r = await client.post(f"/api/widgets/{widget.id}/developers", json={"developerId": member.id})
    assert r.status_code == 201
    assert r.json()["role"] == "member"
    dup = await client.post(f"/api/widgets/{widget.id}/developers", json={"developerId": member.id})
    assert dup.status_code == 409
    assert dup.json()["code"] == "CONFLICT"

    listed = await client.get(f"/api/widgets/{widget.id}/developers")
    assert sorted(d["userId"] for d in listed.json()) == sorted([owner.id, member.id])


@pytest.mark.asyncio
async def test_category_endpoints(client, seed):
    widget = await seed.widget("W")
    cat = await seed.category("Football", "#123456")

    r = await client.post(f"/api/widgets/{widget.id}/categories", json={"categoryId": cat.id})
    assert r.status_code == 201
    assert r.json() == {"id": cat.id, "name": "Football", "hexCode": "#123456"}

    listed = await client.get(f"/api/widgets/{widget.id}/categories")
    assert [c["id"] for c in listed.json()] == [cat.id]

    r = await client.delete(f"/api/widgets/{widget.id}/categories/{cat.id}")
    assert r.status_code == 204
    r = await client.delete(f"/api/widgets/{widget.id}/categories/{cat.id}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": True}


@pytest.mark.asyncio
async def test_handler_timeout_returns_504_problem():
    app = FastAPI()
    app.add_middleware(HandlerTimeoutMiddleware, timeout_seconds=0.01)
    register_error_handlers(app)

    @app.get("/slow")
    async def _slow():
        await asyncio.sleep(0.5)
        return {"ok": True}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://t") as c:
        r = await c.get("/slow")
    assert r.status_code == 504
    body = r.json()
    assert body["title"] == "Gateway Timeout"
    assert body["type"] == "about:blank"


@pytest.mark.asyncio
async def test_unexpected_error_becomes_500_problem():
    app = FastAPI()
    app.add_middleware(CatchAllExceptionMiddleware)
    register_error_handlers(app)

    @app.get("/boom")
    async def _boom():
        raise KeyError("secret internals")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://t") as c:
        r = await c.get("/boom")
    assert r.status_code == 500
    assert r.json()["code"] == "INTERNAL_ERROR"
    assert "secret" not in r.text
