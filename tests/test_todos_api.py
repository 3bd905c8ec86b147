import uuid

from sqlalchemy.orm import Session

from app.models.todo import Todo

def create_todo(client, actor, title: str = "t", **extra) -> dict:
    r = client.post("/todos", json={"title": title, **extra}, headers=actor.headers)
    assert r.status_code == 201, r.text
    return r.json()

def patch(client, actor, todo_id: str, body: dict):
    return client.patch(f"/todos/{todo_id}", json=body, headers=actor.headers)

def test_create_returns_owner_and_defaults(client, alice):
    t = create_todo(client, alice, "buy milk", content="2 litres")

    assert t["title"] == "buy milk"
    assert t["content"] == "2 litres"
    assert t["isDone"] is False
    assert t["ownerId"] == alice.id
    assert t["createdAt"]
    assert t["owner"] == {"name": "alice", "email": "alice@example.com", "role": "user"}

def test_create_ignores_client_supplied_owner(client, alice, bob, db_session: Session):
    r = client.post(
        "/todos",
        json={"title": "sneaky", "ownerId": bob.id, "owner_id": bob.id},
        headers=alice.headers,
    )
    assert r.status_code == 201, r.text
    assert r.json()["ownerId"] == alice.id

    stored = db_session.get(Todo, uuid.UUID(r.json()["id"]))
    assert stored is not None
    assert str(stored.owner_id) == alice.id

def test_create_validation(client, alice):
    r = client.post("/todos", json={}, headers=alice.headers)
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"

    r = client.post("/todos", json={"title": "   "}, headers=alice.headers)
    assert r.status_code == 400

    r = client.post("/todos", json={"title": "x" * 201}, headers=alice.headers)
    assert r.status_code == 400

    r = client.post("/todos", json={"title": "ok", "content": "x" * 1001}, headers=alice.headers)
    assert r.status_code == 400

    r = client.post("/todos", json={"title": "x" * 200, "content": "x" * 1000}, headers=alice.headers)
    assert r.status_code == 201, r.text

def test_requires_authentication(client):
    assert client.get("/todos").status_code == 401
    assert client.post("/todos", json={"title": "x"}).status_code == 401

    r = client.get("/todos", headers={"authorization": "bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["error"] == "unauthenticated"

def test_user_lists_only_own_todos(client, alice, bob, manager, admin):
    a1 = create_todo(client, alice, "a1")
    a2 = create_todo(client, alice, "a2")
    b1 = create_todo(client, bob, "b1")

    r = client.get("/todos", headers=alice.headers)
    assert r.status_code == 200
    assert {t["id"] for t in r.json()} == {a1["id"], a2["id"]}
    assert all(t["ownerId"] == alice.id for t in r.json())

    r = client.get("/todos", headers=bob.headers)
    assert [t["id"] for t in r.json()] == [b1["id"]]

    for privileged in (manager, admin):
        r = client.get("/todos", headers=privileged.headers)
        assert r.status_code == 200
        assert {t["id"] for t in r.json()} == {a1["id"], a2["id"], b1["id"]}

def test_list_includes_owner_display_fields(client, alice, manager):
    create_todo(client, alice, "a1")
    r = client.get("/todos", headers=manager.headers)
    (t,) = r.json()
    assert t["owner"]["email"] == "alice@example.com"
    assert t["owner"]["role"] == "user"

def test_get_single_follows_visibility(client, alice, bob, manager):
    t = create_todo(client, alice, "private")

    assert client.get(f"/todos/{t['id']}", headers=alice.headers).status_code == 200
    assert client.get(f"/todos/{t['id']}", headers=manager.headers).status_code == 200

    r = client.get(f"/todos/{t['id']}", headers=bob.headers)
    assert r.status_code == 404
    assert r.json()["error"] == "task_not_found"

def test_user_updates_own_todo(client, alice):
    t = create_todo(client, alice, "mine")
    r = patch(client, alice, t["id"], {"isDone": True})
    assert r.status_code == 200, r.text
    assert r.json()["isDone"] is True

    r = patch(client, alice, t["id"], {"title": "renamed", "content": "notes", "isDone": False})
    assert r.status_code == 200, r.text
    body = r.json()
    assert (body["title"], body["content"], body["isDone"]) == ("renamed", "notes", False)

def test_user_cannot_update_others_todo(client, alice, bob):
    t = create_todo(client, bob, "bob's")
    r = patch(client, alice, t["id"], {"title": "y"})
    assert r.status_code == 403
    assert r.json() == {"error": "forbidden", "detail": "you can only update your own todos"}

    r = patch(client, alice, t["id"], {"isDone": True})
    assert r.status_code == 403

def test_manager_may_only_toggle_completion(client, alice, manager):
    t = create_todo(client, alice, "alice's")

    r = patch(client, manager, t["id"], {"title": "x", "isDone": True})
    assert r.status_code == 403
    assert r.json()["detail"] == "managers can only mark todos as done/undone"

    r = patch(client, manager, t["id"], {"content": "x"})
    assert r.status_code == 403

    r = patch(client, manager, t["id"], {"isDone": True})
    assert r.status_code == 200, r.text
    assert r.json()["isDone"] is True
    assert r.json()["title"] == "alice's"

def test_manager_rules_apply_to_own_todo(client, manager):
    t = create_todo(client, manager, "manager's own")
    assert patch(client, manager, t["id"], {"title": "nope"}).status_code == 403
    assert patch(client, manager, t["id"], {"isDone": True}).status_code == 200

def test_admin_updates_anything(client, alice, admin):
    t = create_todo(client, alice, "alice's")
    r = patch(client, admin, t["id"], {"title": "by admin", "content": None, "isDone": True})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["title"] == "by admin"
    assert body["content"] is None
    assert body["isDone"] is True
    assert body["ownerId"] == alice.id

def test_update_validation(client, alice):
    t = create_todo(client, alice, "v")

    r = patch(client, alice, t["id"], {})
    assert r.status_code == 400
    assert r.json()["detail"] == "no fields to update"

    r = patch(client, alice, t["id"], {"ownerId": str(uuid.uuid4())})
    assert r.status_code == 400

    r = patch(client, alice, t["id"], {"priority": 1})
    assert r.status_code == 400

    r = patch(client, alice, t["id"], {"title": None})
    assert r.status_code == 400

    r = patch(client, alice, t["id"], {"isDone": "yes"})
    assert r.status_code == 400

    r = patch(client, alice, t["id"], {"title": ""})
    assert r.status_code == 400

def test_unknown_field_rejected_before_authorization(client, bob, manager):
    t = create_todo(client, bob, "b")
    # a manager sending isDone plus junk gets a validation error, not a policy answer
    r = patch(client, manager, t["id"], {"isDone": True, "ownerId": str(uuid.uuid4())})
    assert r.status_code == 400

def test_missing_todo_is_404_before_validation(client, alice):
    missing = uuid.uuid4()
    r = patch(client, alice, str(missing), {"title": ""})
    assert r.status_code == 404
    assert r.json()["error"] == "task_not_found"

    r = client.delete(f"/todos/{missing}", headers=alice.headers)
    assert r.status_code == 404

def test_authentication_checked_before_todo_lookup(client):
    r = client.patch(f"/todos/{uuid.uuid4()}", json={"isDone": True})
    assert r.status_code == 401

def test_malformed_id_is_validation_error(client, alice):
    r = client.patch("/todos/not-a-uuid", json={"isDone": True}, headers=alice.headers)
    assert r.status_code == 400

def test_denied_update_changes_nothing(client, alice, bob, db_session: Session):
    t = create_todo(client, bob, "keep", content="as is")
    assert patch(client, alice, t["id"], {"title": "y"}).status_code == 403

    stored = db_session.get(Todo, uuid.UUID(t["id"]))
    assert stored.title == "keep"
    assert stored.content == "as is"

def test_delete_matrix(client, alice, bob, manager, admin, db_session: Session):
    own = create_todo(client, alice, "own")
    bobs = create_todo(client, bob, "bob's")

    r = client.delete(f"/todos/{bobs['id']}", headers=alice.headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "you can only delete your own todos"

    r = client.delete(f"/todos/{own['id']}", headers=manager.headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "managers cannot delete todos"

    r = client.delete(f"/todos/{own['id']}", headers=alice.headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "todo deleted", "id": own["id"]}

    r = client.delete(f"/todos/{bobs['id']}", headers=admin.headers)
    assert r.status_code == 200, r.text

    assert db_session.get(Todo, uuid.UUID(own["id"])) is None
    assert db_session.get(Todo, uuid.UUID(bobs["id"])) is None

    # deletion is final
    r = client.delete(f"/todos/{own['id']}", headers=admin.headers)
    assert r.status_code == 404

def test_manager_cannot_delete_own_todo(client, manager):
    t = create_todo(client, manager, "m")
    assert client.delete(f"/todos/{t['id']}", headers=manager.headers).status_code == 403

def test_round_trip_only_is_done_changes(client, alice):
    t = create_todo(client, alice, "A", content="B")

    r = client.get(f"/todos/{t['id']}", headers=alice.headers)
    fetched = r.json()
    assert (fetched["title"], fetched["content"], fetched["isDone"]) == ("A", "B", False)

    assert patch(client, alice, t["id"], {"isDone": True}).status_code == 200

    after = client.get(f"/todos/{t['id']}", headers=alice.headers).json()
    assert after["isDone"] is True
    for key in ("id", "title", "content", "ownerId", "createdAt"):
        assert after[key] == fetched[key]

def test_role_change_applies_on_next_request(client, alice, bob, admin):
    t = create_todo(client, bob, "b")
    assert patch(client, alice, t["id"], {"isDone": True}).status_code == 403

    r = client.patch(f"/admin/users/{alice.id}/role", json={"role": "manager"}, headers=admin.headers)
    assert r.status_code == 200, r.text

    assert patch(client, alice, t["id"], {"isDone": True}).status_code == 200
    assert len(client.get("/todos", headers=alice.headers).json()) == 1

def test_list_is_newest_first(client, alice, manager):
    ids = [create_todo(client, alice, f"t{i}")["id"] for i in range(3)]

    for viewer in (alice, manager):
        r = client.get("/todos", headers=viewer.headers)
        assert r.status_code == 200
        assert [t["id"] for t in r.json()] == ids[::-1]
