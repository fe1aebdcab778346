"""Project tests — creation (atomic), visibility, updates, deletion.

Pattern: test_<verb>_<noun>_<scenario>
"""

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError

from taskboard.db.models import Project
from taskboard.services.project_service import ProjectService


async def _add_member(client, project, actor, user, role="member"):
    r = await client.post(
        f"/api/projects/{project['id']}/members",
        json={"user_id": user.id, "role": role},
        headers=actor.headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


# ═══════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_project(client, owner):
    r = await client.post(
        "/api/projects",
        json={"name": "Alpha", "description": "Docs", "color": "#112233"},
        headers=owner.headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    project = body["data"]
    assert project["name"] == "Alpha"
    assert project["color"] == "#112233"
    assert project["creator_id"] == owner.id
    assert project["user_role"] == "owner"
    assert project["boards"] == []


@pytest.mark.asyncio
async def test_create_project_lists_owner_without_member_row(client, owner, db_session):
    """The owner is synthesized from creator_id; no membership row is written."""
    r = await client.post("/api/projects", json={"name": "Solo"}, headers=owner.headers)
    project = r.json()["data"]

    assert [m["user_id"] for m in project["members"]] == [owner.id]
    assert project["members"][0]["is_owner"] is True
    assert project["members"][0]["role"] == "owner"
    assert project["stats"]["members_count"] == 1

    members = await ProjectService(db_session).list_members(uuid.UUID(project["id"]))
    assert members == []


@pytest.mark.asyncio
async def test_create_project_with_members_and_boards(client, owner, make_user):
    """One request sets up members (by email) and boards with default columns."""
    alice = await make_user("Alice")
    r = await client.post(
        "/api/projects",
        json={
            "name": "Launch",
            "members": [alice.email, "nobody@example.com", owner.email],
            "boards": [
                {"name": "Main"},
                {"name": "Ops", "columns": [{"name": "Inbox"}, {"name": "Closed"}]},
            ],
        },
        headers=owner.headers,
    )
    assert r.status_code == 201, r.text
    project = r.json()["data"]

    member_ids = [m["user_id"] for m in project["members"]]
    assert member_ids == [owner.id, alice.id]
    assert project["members"][1]["role"] == "member"

    boards = {b["name"]: b for b in project["boards"]}
    assert [c["name"] for c in boards["Main"]["columns"]] == [
        "To do",
        "In progress",
        "Review",
        "Done",
    ]
    assert [c["position"] for c in boards["Main"]["columns"]] == [0, 1, 2, 3]
    assert [c["name"] for c in boards["Ops"]["columns"]] == ["Inbox", "Closed"]
    assert project["stats"]["boards_count"] == 2


@pytest.mark.asyncio
async def test_create_project_validates_input(client, owner):
    for body in ({"name": ""}, {"name": "   "}, {"name": "X", "color": "blue"}, {"name": "x" * 101}):
        r = await client.post("/api/projects", json=body, headers=owner.headers)
        assert r.status_code == 400, body
        assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_create_project_requires_auth(client):
    r = await client.post("/api/projects", json={"name": "Anon"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_failed_board_step_leaves_no_project(db_session, owner):
    """A failure while creating columns rolls back the project row too."""
    service = ProjectService(db_session)
    with pytest.raises(DBAPIError):
        await service.create_project(
            owner.user.id,
            "Doomed",
            boards=[{"name": "Main", "columns": [{"name": "x" * 300}]}],
        )

    count = await db_session.execute(
        select(func.count(Project.id)).where(Project.name == "Doomed")
    )
    assert count.scalar_one() == 0


# ═══════════════════════════════════════════════════════════
# Read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_projects_only_readable(client, owner, outsider, make_user, project):
    member = await make_user("Member")
    await _add_member(client, project, owner, member)

    own = await client.get("/api/projects", headers=owner.headers)
    assert [p["id"] for p in own.json()["data"]] == [project["id"]]
    assert own.json()["data"][0]["user_role"] == "owner"

    joined = await client.get("/api/projects", headers=member.headers)
    assert [p["user_role"] for p in joined.json()["data"]] == ["member"]

    none = await client.get("/api/projects", headers=outsider.headers)
    assert none.json()["data"] == []


@pytest.mark.asyncio
async def test_global_admin_sees_every_project(client, make_user, project):
    admin = await make_user("Root", role="admin")
    r = await client.get("/api/projects", headers=admin.headers)
    listed = {p["id"]: p for p in r.json()["data"]}
    assert project["id"] in listed
    assert listed[project["id"]]["user_role"] == "admin"


@pytest.mark.asyncio
async def test_get_project(client, owner, project):
    r = await client.get(f"/api/projects/{project['id']}", headers=owner.headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Alpha"
    assert data["user_role"] == "owner"
    assert data["stats"] == {"boards_count": 0, "tasks_count": 0, "members_count": 1}


@pytest.mark.asyncio
async def test_get_project_twice_is_identical(client, owner, project):
    url = f"/api/projects/{project['id']}"
    first = await client.get(url, headers=owner.headers)
    second = await client.get(url, headers=owner.headers)
    assert first.json() == second.json()


@pytest.mark.asyncio
async def test_get_project_forbidden_for_outsider(client, outsider, project):
    r = await client.get(f"/api/projects/{project['id']}", headers=outsider.headers)
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "Access denied"}


@pytest.mark.asyncio
async def test_get_missing_project(client, owner):
    r = await client.get(f"/api/projects/{uuid.uuid4()}", headers=owner.headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Project not found"


@pytest.mark.asyncio
async def test_get_project_bad_id(client, owner):
    r = await client.get("/api/projects/not-a-uuid", headers=owner.headers)
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Update / delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_project_by_owner(client, owner, project):
    r = await client.put(
        f"/api/projects/{project['id']}",
        json={"name": "Alpha 2", "color": "#ABCDEF"},
        headers=owner.headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Alpha 2"
    assert data["color"] == "#ABCDEF"
    assert data["description"] == "First project"


@pytest.mark.asyncio
async def test_update_project_needs_manage(client, owner, make_user, project):
    member = await make_user("Member")
    await _add_member(client, project, owner, member)
    r = await client.put(
        f"/api/projects/{project['id']}", json={"name": "Hijack"}, headers=member.headers
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_project_admin_can_update_but_not_delete(client, owner, make_user, project):
    admin = await make_user("Deputy")
    await _add_member(client, project, owner, admin, role="admin")

    r = await client.put(
        f"/api/projects/{project['id']}", json={"description": "Edited"}, headers=admin.headers
    )
    assert r.status_code == 200

    r = await client.delete(f"/api/projects/{project['id']}", headers=admin.headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_delete_project_cascades(client, owner, project):
    board = await client.post(
        f"/api/projects/{project['id']}/boards",
        json={"name": "Main", "columns": [{"name": "Todo"}]},
        headers=owner.headers,
    )
    board_id = board.json()["data"]["id"]

    r = await client.delete(f"/api/projects/{project['id']}", headers=owner.headers)
    assert r.status_code == 200

    assert (await client.get(f"/api/projects/{project['id']}", headers=owner.headers)).status_code == 404
    assert (await client.get(f"/api/boards/{board_id}", headers=owner.headers)).status_code == 404


@pytest.mark.asyncio
async def test_global_admin_can_delete_any_project(client, make_user, project):
    admin = await make_user("Root", role="admin")
    r = await client.delete(f"/api/projects/{project['id']}", headers=admin.headers)
    assert r.status_code == 200
