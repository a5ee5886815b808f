from datetime import datetime

import pytest

pytestmark = pytest.mark.anyio

OWNER_ID = 1
OTHER_OWNER_ID = 2


async def test_create_and_get_todo(client):
    res = await client.post("/api/todos", json={"title": "buy milk"})
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["title"] == "buy milk"
    assert data["completed"] is False
    assert data["description"] == ""
    assert data["user_id"] == OWNER_ID
    assert res.headers["location"] == f"/api/todos/{data['id']}"

    res = await client.get(f"/api/todos/{data['id']}")
    assert res.status_code == 200
    assert res.json()["data"]["title"] == "buy milk"
    assert res.json()["data"] == data


async def test_create_with_all_fields(client):
    payload = {"title": "write report", "description": "quarterly", "completed": True}
    res = await client.post("/api/todos", json=payload)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["description"] == "quarterly"
    assert data["completed"] is True


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"title": ""},
        {"title": "x" * 256},
        {"title": "ok", "description": "d" * 2001},
        {"title": "ok", "completed": "maybe"},
    ],
)
async def test_create_rejects_invalid_body(client, payload):
    res = await client.post("/api/todos", json=payload)
    assert res.status_code == 400
    assert "error" in res.json()


async def test_list_paginates(client, insert_todo):
    for i in range(5):
        await insert_todo(title=f"todo {i}")

    res = await client.get("/api/todos", params={"page": 1, "page_size": 2})
    assert res.status_code == 200
    body = res.json()["data"]
    assert len(body["items"]) == 2
    assert body["meta"] == {"page": 1, "page_size": 2, "total": 5, "total_pages": 3}

    res = await client.get("/api/todos", params={"page": 3, "page_size": 2})
    assert len(res.json()["data"]["items"]) == 1


async def test_list_empty(client):
    res = await client.get("/api/todos")
    assert res.status_code == 200
    assert res.json()["data"] == {
        "items": [],
        "meta": {"page": 1, "page_size": 5, "total": 0, "total_pages": 0},
    }


async def test_list_filters_by_completed(client, insert_todo):
    await insert_todo(title="open")
    await insert_todo(title="done", completed=True)

    res = await client.get("/api/todos", params={"completed": "true"})
    items = res.json()["data"]["items"]
    assert [t["title"] for t in items] == ["done"]

    res = await client.get("/api/todos", params={"completed": "false"})
    items = res.json()["data"]["items"]
    assert [t["title"] for t in items] == ["open"]


async def test_list_sorts_by_allowed_column(client, insert_todo):
    for title in ("banana", "apple", "cherry"):
        await insert_todo(title=title)

    res = await client.get("/api/todos", params={"sort": "title asc"})
    assert [t["title"] for t in res.json()["data"]["items"]] == ["apple", "banana", "cherry"]

    res = await client.get("/api/todos", params={"sort": "title desc"})
    assert [t["title"] for t in res.json()["data"]["items"]] == ["cherry", "banana", "apple"]


@pytest.mark.parametrize(
    "params, message",
    [
        ({"page": 0}, "invalid page parameter"),
        ({"page": "abc"}, "invalid page parameter"),
        ({"page": 10**19}, "invalid page parameter"),
        ({"page_size": 0}, "invalid page_size parameter (1-100)"),
        ({"page_size": 101}, "invalid page_size parameter (1-100)"),
        ({"completed": "yes"}, "invalid completed filter; must be true or false"),
        ({"sort": "title; drop table todos"}, "invalid sort parameter"),
        ({"sort": "password desc"}, "invalid sort parameter"),
        ({"sort": "title sideways"}, "invalid sort parameter"),
    ],
)
async def test_list_rejects_invalid_params(client, params, message):
    res = await client.get("/api/todos", params=params)
    assert res.status_code == 400
    assert res.json() == {"error": message}


async def test_list_never_returns_other_owners_todos(client, insert_todo):
    await insert_todo(title="mine")
    await insert_todo(title="theirs", owner_id=OTHER_OWNER_ID)
    await insert_todo(title="theirs done", owner_id=OTHER_OWNER_ID, completed=True)

    for params in ({}, {"completed": "true"}, {"completed": "false"}, {"sort": "id asc"}):
        res = await client.get("/api/todos", params=params)
        items = res.json()["data"]["items"]
        assert all(t["user_id"] == OWNER_ID for t in items)
    res = await client.get("/api/todos")
    assert res.json()["data"]["meta"]["total"] == 1


async def test_other_owners_todo_is_not_found(client, insert_todo):
    todo_id = await insert_todo(title="theirs", owner_id=OTHER_OWNER_ID)
    not_found = {"error": "todo not found or not authorized"}

    res = await client.get(f"/api/todos/{todo_id}")
    assert res.status_code == 404
    assert res.json() == not_found

    res = await client.patch(f"/api/todos/{todo_id}", json={"title": "hijacked"})
    assert res.status_code == 404
    assert res.json() == not_found

    res = await client.delete(f"/api/todos/{todo_id}")
    assert res.status_code == 404
    assert res.json() == not_found


async def test_patch_single_field(client, insert_todo):
    todo_id = await insert_todo(
        title="keep me", description="unchanged", updated_at=datetime(2020, 1, 1, 12, 0, 0)
    )
    before = (await client.get(f"/api/todos/{todo_id}")).json()["data"]

    res = await client.patch(f"/api/todos/{todo_id}", json={"completed": True})
    assert res.status_code == 200
    after = res.json()["data"]

    assert after["completed"] is True
    assert after["title"] == before["title"]
    assert after["description"] == before["description"]
    assert after["created_at"] == before["created_at"]
    updated_before = datetime.fromisoformat(before["updated_at"]).replace(tzinfo=None)
    updated_after = datetime.fromisoformat(after["updated_at"]).replace(tzinfo=None)
    assert updated_before == datetime(2020, 1, 1, 12, 0, 0)
    assert updated_after > updated_before

    refetched = (await client.get(f"/api/todos/{todo_id}")).json()["data"]
    assert refetched == after


async def test_patch_distinguishes_empty_from_omitted(client, insert_todo):
    todo_id = await insert_todo(title="t", description="something")
    res = await client.patch(f"/api/todos/{todo_id}", json={"description": ""})
    assert res.status_code == 200
    assert res.json()["data"]["description"] == ""
    assert res.json()["data"]["title"] == "t"


async def test_patch_with_no_fields_is_rejected(client, insert_todo):
    todo_id = await insert_todo(title="untouched")
    before = (await client.get(f"/api/todos/{todo_id}")).json()["data"]

    res = await client.patch(f"/api/todos/{todo_id}", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "no fields to update"}

    after = (await client.get(f"/api/todos/{todo_id}")).json()["data"]
    assert after == before


@pytest.mark.parametrize(
    "payload",
    [{"title": None}, {"title": ""}, {"completed": None}, {"description": "d" * 2001}],
)
async def test_patch_rejects_invalid_values(client, insert_todo, payload):
    todo_id = await insert_todo()
    res = await client.patch(f"/api/todos/{todo_id}", json=payload)
    assert res.status_code == 400


async def test_put_uses_partial_update(client, insert_todo):
    todo_id = await insert_todo(title="old", description="keep")
    res = await client.put(f"/api/todos/{todo_id}", json={"title": "new"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["title"] == "new"
    assert data["description"] == "keep"


async def test_patch_missing_todo(client):
    res = await client.patch("/api/todos/999", json={"title": "x"})
    assert res.status_code == 404


async def test_delete_todo(client, insert_todo):
    todo_id = await insert_todo()
    res = await client.delete(f"/api/todos/{todo_id}")
    assert res.status_code == 200
    assert res.json() == {"data": {"message": "Todo successfully deleted", "id": todo_id}}

    res = await client.get(f"/api/todos/{todo_id}")
    assert res.status_code == 404


async def test_delete_missing_todo(client):
    res = await client.delete("/api/todos/999")
    assert res.status_code == 404
    assert res.json() == {"error": "todo not found or not authorized"}


async def test_create_treats_null_completed_as_false(client):
    res = await client.post("/api/todos", json={"title": "a", "completed": None})
    assert res.status_code == 201
    assert res.json()["data"]["completed"] is False


async def test_create_rejects_malformed_json(client):
    res = await client.post(
        "/api/todos",
        content=b'{"title": "unterminated',
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json() == {"error": "invalid request payload"}


@pytest.mark.parametrize("todo_id", ["99999999999999999999", "0", "-1"])
async def test_out_of_range_id_is_not_found(client, todo_id):
    not_found = {"error": "todo not found or not authorized"}

    res = await client.get(f"/api/todos/{todo_id}")
    assert res.status_code == 404
    assert res.json() == not_found

    res = await client.patch(f"/api/todos/{todo_id}", json={"title": "x"})
    assert res.status_code == 404

    res = await client.delete(f"/api/todos/{todo_id}")
    assert res.status_code == 404
    assert res.json() == not_found
