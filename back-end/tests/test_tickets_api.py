from datetime import datetime
from uuid import uuid4

import pytest

from conftest import DEFAULT_PASSWORD, auth_headers
from settings import settings
from utilities.enumerables import UserRole


async def create_ticket(client, user, title="Printer jam", **extra):
    response = await client.post(
        "/api/tickets", json={"title": title, **extra}, headers=auth_headers(user)
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_owner_view_and_admin_delete(client, make_user):
    await make_user("alice")
    bob = await make_user("bob", UserRole.ADMIN)
    carol = await make_user("carol")

    login = await client.post(
        "/api/auth/login", json={"username": "alice", "password": DEFAULT_PASSWORD}
    )
    token_a = {"Authorization": f"Bearer {login.json()['token']}"}

    created = await client.post(
        "/api/tickets",
        json={"title": "Laptop will not boot", "description": "Black screen", "priority": "HIGH"},
        headers=token_a,
    )
    assert created.status_code == 201
    t1 = created.json()
    assert t1["status"] == "OPEN"
    assert t1["priority"] == "HIGH"
    assert t1["createdBy"]["username"] == "alice"
    assert t1["assignedTo"] is None
    assert t1["commentCount"] == 0

    assert (await client.get(f"/api/tickets/{t1['id']}", headers=token_a)).status_code == 200
    assert (await client.get(f"/api/tickets/{t1['id']}", headers=auth_headers(carol))).status_code == 403

    deleted = await client.delete(f"/api/tickets/{t1['id']}", headers=auth_headers(bob))
    assert deleted.status_code == 204
    assert (await client.get(f"/api/tickets/{t1['id']}", headers=token_a)).status_code == 404


async def test_resolve_then_assign(client, users):
    t1 = await create_ticket(client, users["alice"])

    resolved = await client.put(
        f"/api/tickets/{t1['id']}", json={"status": "RESOLVED"}, headers=auth_headers(users["tech"])
    )
    assert resolved.status_code == 200
    resolved = resolved.json()
    assert resolved["status"] == "RESOLVED"
    assert resolved["resolvedAt"] is not None

    assigned = await client.put(
        f"/api/tickets/{t1['id']}",
        json={"assignedToId": str(users["tech"].id)},
        headers=auth_headers(users["manager"]),
    )
    assert assigned.status_code == 200
    assigned = assigned.json()
    assert assigned["assignedTo"]["username"] == "tech"
    assert assigned["status"] == "RESOLVED"
    assert assigned["resolvedAt"] == resolved["resolvedAt"]
    assert datetime.fromisoformat(assigned["updatedAt"]) >= datetime.fromisoformat(resolved["updatedAt"])
    assert assigned["version"] == resolved["version"] + 1


async def test_created_by_cannot_be_supplied(client, users):
    ticket = await create_ticket(client, users["alice"], createdById=str(users["bob"].id))
    assert ticket["createdBy"]["username"] == "alice"


async def test_blank_title_is_rejected(client, users):
    response = await client.post(
        "/api/tickets", json={"title": "   "}, headers=auth_headers(users["alice"])
    )
    assert response.status_code == 400
    assert "title" in response.json()["validationErrors"]


async def test_user_list_is_scoped_for_every_page_size(client, users):
    for i in range(4):
        await create_ticket(client, users["alice"], title=f"alice {i}")
    for i in range(3):
        await create_ticket(client, users["bob"], title=f"bob {i}")

    for size in (1, 2, 3, 5, 100):
        seen = []
        page = 0
        while True:
            response = await client.get(
                "/api/tickets", params={"page": page, "size": size}, headers=auth_headers(users["alice"])
            )
            assert response.status_code == 200
            body = response.json()
            assert body["totalElements"] == 4
            seen.extend(body["content"])
            if body["last"]:
                break
            page += 1
        assert len(seen) == 4
        assert len({t["id"] for t in seen}) == 4
        assert all(t["createdBy"]["username"] == "alice" for t in seen)


async def test_staff_list_sees_everything(client, users):
    await create_ticket(client, users["alice"])
    await create_ticket(client, users["bob"])
    response = await client.get("/api/tickets", headers=auth_headers(users["tech"]))
    assert response.json()["totalElements"] == 2


async def test_list_sorting(client, users):
    for title in ("b", "c", "a"):
        await create_ticket(client, users["alice"], title=title)

    response = await client.get(
        "/api/tickets",
        params={"sortBy": "title", "sortDir": "asc"},
        headers=auth_headers(users["alice"]),
    )
    assert [t["title"] for t in response.json()["content"]] == ["a", "b", "c"]


async def test_list_rejects_unknown_sort_field(client, users):
    response = await client.get(
        "/api/tickets", params={"sortBy": "password"}, headers=auth_headers(users["alice"])
    )
    assert response.status_code == 400
    assert "sortBy" in response.json()["validationErrors"]


async def test_search_is_case_insensitive_and_scoped(client, users):
    await create_ticket(client, users["alice"], title="Printer on fire")
    await create_ticket(client, users["alice"], title="Mouse", description="the PRINTER cable")
    await create_ticket(client, users["bob"], title="Printer jam")

    mine = await client.get(
        "/api/tickets/search", params={"query": "printer"}, headers=auth_headers(users["alice"])
    )
    assert mine.status_code == 200
    assert mine.json()["totalElements"] == 2

    everyone = await client.get(
        "/api/tickets/search", params={"query": "PRINTER"}, headers=auth_headers(users["manager"])
    )
    assert everyone.json()["totalElements"] == 3


async def test_creator_can_edit_fields_but_not_status(client, users):
    ticket = await create_ticket(client, users["alice"])
    headers = auth_headers(users["alice"])

    edited = await client.put(
        f"/api/tickets/{ticket['id']}", json={"title": "Printer jam, tray 2"}, headers=headers
    )
    assert edited.status_code == 200
    assert edited.json()["title"] == "Printer jam, tray 2"

    status_change = await client.put(
        f"/api/tickets/{ticket['id']}", json={"status": "CLOSED"}, headers=headers
    )
    assert status_change.status_code == 403


async def test_denied_field_rejects_whole_update(client, users):
    ticket = await create_ticket(client, users["alice"])

    response = await client.put(
        f"/api/tickets/{ticket['id']}",
        json={"title": "changed", "assignedToId": str(users["tech"].id)},
        headers=auth_headers(users["tech"]),
    )
    assert response.status_code == 403

    current = await client.get(f"/api/tickets/{ticket['id']}", headers=auth_headers(users["alice"]))
    assert current.json()["title"] == "Printer jam"
    assert current.json()["assignedTo"] is None


async def test_sparse_update_keeps_other_fields(client, users):
    ticket = await create_ticket(client, users["alice"], description="Tray 2", priority="LOW")

    response = await client.put(
        f"/api/tickets/{ticket['id']}", json={"priority": "HIGH"}, headers=auth_headers(users["alice"])
    )
    body = response.json()
    assert body["priority"] == "HIGH"
    assert body["title"] == "Printer jam"
    assert body["description"] == "Tray 2"


async def test_null_status_is_rejected(client, users):
    ticket = await create_ticket(client, users["alice"])
    response = await client.put(
        f"/api/tickets/{ticket['id']}", json={"status": None}, headers=auth_headers(users["tech"])
    )
    assert response.status_code == 400


async def test_unassign_with_explicit_null(client, users):
    ticket = await create_ticket(client, users["alice"])
    headers = auth_headers(users["manager"])

    await client.put(
        f"/api/tickets/{ticket['id']}", json={"assignedToId": str(users["tech"].id)}, headers=headers
    )
    response = await client.put(
        f"/api/tickets/{ticket['id']}", json={"assignedToId": None}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["assignedTo"] is None


async def test_assign_to_unknown_or_disabled_user(client, users, make_user):
    ticket = await create_ticket(client, users["alice"])
    headers = auth_headers(users["manager"])

    unknown = await client.put(
        f"/api/tickets/{ticket['id']}", json={"assignedToId": str(uuid4())}, headers=headers
    )
    assert unknown.status_code == 404

    disabled = await make_user("retired", UserRole.TECHNICIAN, enabled=False)
    response = await client.put(
        f"/api/tickets/{ticket['id']}", json={"assignedToId": str(disabled.id)}, headers=headers
    )
    assert response.status_code == 400


async def test_stale_version_is_a_conflict(client, users):
    ticket = await create_ticket(client, users["alice"])
    headers = auth_headers(users["tech"])

    first = await client.put(
        f"/api/tickets/{ticket['id']}", json={"status": "IN_PROGRESS", "version": 1}, headers=headers
    )
    assert first.status_code == 200
    assert first.json()["version"] == 2

    second = await client.put(
        f"/api/tickets/{ticket['id']}", json={"status": "RESOLVED", "version": 1}, headers=headers
    )
    assert second.status_code == 409
    assert second.json()["status"] == 409


async def test_delete_requires_creator_or_admin(client, users):
    ticket = await create_ticket(client, users["alice"])

    for role in ("tech", "manager"):
        response = await client.delete(f"/api/tickets/{ticket['id']}", headers=auth_headers(users[role]))
        assert response.status_code == 403

    response = await client.delete(f"/api/tickets/{ticket['id']}", headers=auth_headers(users["alice"]))
    assert response.status_code == 204


async def test_delete_removes_comments(client, users):
    ticket = await create_ticket(client, users["alice"])
    await client.post(
        f"/api/tickets/{ticket['id']}/comments", json={"content": "any news?"}, headers=auth_headers(users["alice"])
    )

    response = await client.delete(f"/api/tickets/{ticket['id']}", headers=auth_headers(users["admin"]))
    assert response.status_code == 204

    comments = await client.get(
        f"/api/tickets/{ticket['id']}/comments", headers=auth_headers(users["admin"])
    )
    assert comments.status_code == 404


async def test_unknown_ticket_is_404(client, users):
    response = await client.get(f"/api/tickets/{uuid4()}", headers=auth_headers(users["admin"]))
    assert response.status_code == 404
    assert "Ticket not found" in response.json()["message"]


@pytest.fixture
def conceal_forbidden(monkeypatch):
    monkeypatch.setattr(settings, "CONCEAL_FORBIDDEN_TICKETS", True)


async def test_foreign_ticket_is_403_by_default(client, users):
    ticket = await create_ticket(client, users["alice"])
    response = await client.get(f"/api/tickets/{ticket['id']}", headers=auth_headers(users["bob"]))
    assert response.status_code == 403


async def test_foreign_ticket_is_404_when_concealed(client, users, conceal_forbidden):
    ticket = await create_ticket(client, users["alice"])
    headers = auth_headers(users["bob"])

    assert (await client.get(f"/api/tickets/{ticket['id']}", headers=headers)).status_code == 404
    assert (await client.put(
        f"/api/tickets/{ticket['id']}", json={"title": "mine now"}, headers=headers
    )).status_code == 404
    assert (await client.delete(f"/api/tickets/{ticket['id']}", headers=headers)).status_code == 404
    assert (await client.get(f"/api/tickets/{ticket['id']}/comments", headers=headers)).status_code == 404


async def test_foreign_comment_delete_is_404_when_concealed(client, users, conceal_forbidden):
    ticket = await create_ticket(client, users["alice"])
    created = await client.post(
        f"/api/tickets/{ticket['id']}/comments", json={"content": "hello"}, headers=auth_headers(users["alice"])
    )
    comment_id = created.json()["id"]

    response = await client.delete(
        f"/api/tickets/{ticket['id']}/comments/{comment_id}", headers=auth_headers(users["bob"])
    )
    assert response.status_code == 404

    listed = await client.get(f"/api/tickets/{ticket['id']}/comments", headers=auth_headers(users["alice"]))
    assert [c["id"] for c in listed.json()] == [comment_id]


async def test_foreign_comment_delete_is_403_by_default(client, users):
    ticket = await create_ticket(client, users["alice"])
    created = await client.post(
        f"/api/tickets/{ticket['id']}/comments", json={"content": "hello"}, headers=auth_headers(users["alice"])
    )

    response = await client.delete(
        f"/api/tickets/{ticket['id']}/comments/{created.json()['id']}", headers=auth_headers(users["bob"])
    )
    assert response.status_code == 403


async def test_search_treats_wildcards_literally(client, users):
    for title in ("Disk 100% full", "Disk 50 percent full", "rename user_name", "rename username"):
        await create_ticket(client, users["alice"], title=title)
    headers = auth_headers(users["alice"])

    percent = await client.get("/api/tickets/search", params={"query": "%"}, headers=headers)
    assert [t["title"] for t in percent.json()["content"]] == ["Disk 100% full"]

    underscore = await client.get("/api/tickets/search", params={"query": "user_name"}, headers=headers)
    assert [t["title"] for t in underscore.json()["content"]] == ["rename user_name"]
