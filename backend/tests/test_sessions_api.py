"""Tests for the session endpoints."""

from uuid import uuid4


async def create_session(client, headers, **body):
    response = await client.post("/api/sessions", json=body or None, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


async def test_create_session_without_body(client, headers):
    response = await client.post("/api/sessions", headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["title"] == "Neue Unterhaltung"
    assert body["data"]["is_active"] is True
    assert body["data"]["message_count"] == 0


async def test_create_session_with_title(client, headers):
    session = await create_session(client, headers, title="Mein Beruf")
    assert session["title"] == "Mein Beruf"


async def test_list_sessions_only_own_newest_first(client, headers, other_headers):
    first = await create_session(client, headers)
    second = await create_session(client, headers)
    await create_session(client, other_headers)

    response = await client.get("/api/sessions", headers=headers)

    assert response.status_code == 200
    ids = [s["id"] for s in response.json()["data"]]
    assert ids == [second["id"], first["id"]]


async def test_new_session_deactivates_previous_when_configured(client, headers, override_settings):
    override_settings(deactivate_previous_sessions=True)
    first = await create_session(client, headers)
    await create_session(client, headers)

    response = await client.get("/api/sessions", headers=headers)

    by_id = {s["id"]: s for s in response.json()["data"]}
    assert by_id[first["id"]]["is_active"] is False


async def test_messages_of_new_session_are_empty(client, headers):
    session = await create_session(client, headers)

    response = await client.get(f"/api/sessions/{session['id']}/messages", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [], "error": None, "message": None}


async def test_messages_of_foreign_session_not_found(client, headers, other_headers):
    session = await create_session(client, other_headers)

    response = await client.get(f"/api/sessions/{session['id']}/messages", headers=headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Session nicht gefunden"}


async def test_messages_of_unknown_session_not_found(client, headers):
    response = await client.get(f"/api/sessions/{uuid4()}/messages", headers=headers)
    assert response.status_code == 404

    response = await client.get("/api/sessions/kaputt/messages", headers=headers)
    assert response.status_code == 404


async def test_end_session(client, headers):
    session = await create_session(client, headers)

    response = await client.post(f"/api/sessions/{session['id']}/end", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Session beendet"
    assert body["data"]["is_active"] is False
    assert body["data"]["ended_at"] is not None
