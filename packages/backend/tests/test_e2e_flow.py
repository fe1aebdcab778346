"""Full-flow integration test: the complete taskboard lifecycle over HTTP.

Learn: This walks a new user from registration to their first threaded
comment using the API alone. It proves the pieces connect:
register → approval → login → project → board → columns → tasks →
members → comments → member removal.

Run with: uv run pytest tests/test_e2e_flow.py -v
"""

import uuid

import pytest

PASSWORD = "launch-day-secret"


@pytest.mark.asyncio
async def test_full_lifecycle(client, make_user):
    admin = await make_user("Admin", role="admin")
    email = f"dana-{uuid.uuid4().hex[:8]}@example.com"

    # ─── Register; login is blocked until approved ───────
    r = await client.post(
        "/api/auth/register",
        json={"email": email, "name": "Dana", "password": PASSWORD},
    )
    assert r.status_code == 201
    dana_id = r.json()["data"]["id"]
    assert r.json()["data"]["approval_status"] == "pending"

    r = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 401

    r = await client.post(f"/api/users/{dana_id}/approve", headers=admin.headers)
    assert r.status_code == 200

    r = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200
    dana = {"Authorization": f"Bearer {r.json()['data']['token']}"}
    # the login cookie would otherwise speak for Dana on every later request
    client.cookies.clear()

    # ─── Project with a board and default columns ────────
    r = await client.post(
        "/api/projects",
        json={"name": "Launch", "boards": [{"name": "Main"}]},
        headers=dana,
    )
    assert r.status_code == 201
    project = r.json()["data"]
    assert project["user_role"] == "owner"
    board = project["boards"][0]
    assert [c["name"] for c in board["columns"]] == ["To do", "In progress", "Review", "Done"]
    todo, doing = board["columns"][0], board["columns"][1]

    # ─── Tasks ───────────────────────────────────────────
    r = await client.post(
        f"/api/columns/{todo['id']}/tasks",
        json={"title": "Write press release", "priority": "high"},
        headers=dana,
    )
    assert r.status_code == 201
    task = r.json()["data"]

    # ─── Bring in a teammate and hand the task over ──────
    mate = await make_user("Mate")
    r = await client.post(
        f"/api/projects/{project['id']}/members",
        json={"user_id": mate.id},
        headers=dana,
    )
    assert r.status_code == 201

    r = await client.patch(
        f"/api/tasks/{task['id']}",
        json={"assignee_id": mate.id, "column_id": doing["id"], "status": "in_progress"},
        headers=dana,
    )
    assert r.status_code == 200
    assert r.json()["data"]["column_id"] == doing["id"]

    r = await client.get("/api/projects", headers=mate.headers)
    assert [(p["name"], p["user_role"]) for p in r.json()["data"]] == [("Launch", "member")]

    # ─── Discussion ──────────────────────────────────────
    r = await client.post(
        f"/api/tasks/{task['id']}/comments", json={"content": "Draft is up"}, headers=mate.headers
    )
    question = r.json()["data"]
    r = await client.post(
        f"/api/tasks/{task['id']}/comments",
        json={"content": "Looks great", "parent_id": question["id"]},
        headers=dana,
    )
    assert r.status_code == 201

    r = await client.get(f"/api/tasks/{task['id']}/comments", headers=dana)
    thread = r.json()["data"]
    assert len(thread) == 1
    assert thread[0]["replies"][0]["content"] == "Looks great"

    # ─── Stats reflect it all ────────────────────────────
    r = await client.get(f"/api/projects/{project['id']}", headers=dana)
    stats = r.json()["data"]["stats"]
    assert stats == {"boards_count": 1, "tasks_count": 1, "members_count": 2}

    # ─── Removed members lose access at once ─────────────
    r = await client.delete(f"/api/projects/{project['id']}/members/{mate.id}", headers=dana)
    assert r.status_code == 200
    r = await client.get(f"/api/tasks/{task['id']}", headers=mate.headers)
    assert r.status_code == 403
