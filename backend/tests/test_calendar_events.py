from fastapi.testclient import TestClient

EVENT = {
    "title": "Design review",
    "start": "2025-06-10T09:00:00Z",
    "end": "2025-06-10T10:00:00Z",
    "type": "meeting",
    "location": "Room 4",
}


def test_create_event_stores_it_as_task(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    response = client.post("/api/calendar-events", json=EVENT, headers=headers)
    assert response.status_code == 201
    event = response.json()
    assert event["type"] == "meeting"
    assert event["dueDate"].startswith("2025-06-10T09:00:00")
    assert event["dueTime"] == "2025-06-10T10:00:00+00:00"
    assert event["start"] == "2025-06-10T09:00:00+00:00"
    assert event["end"] == "2025-06-10T10:00:00+00:00"
    assert event["description"] == "Room 4"
    assert event["metadata"]["location"] == "Room 4"

    # Visible through the task API as well
    task = client.get(f"/api/tasks/{event['id']}", headers=headers).json()["task"]
    assert task["title"] == "Design review"


def test_create_event_requires_fields(client: TestClient, auth_context: dict) -> None:
    response = client.post("/api/calendar-events", json={"title": "x"}, headers=auth_context["headers"])
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"


def test_list_only_returns_calendar_types(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    client.post("/api/calendar-events", json=EVENT, headers=headers)
    client.post("/api/tasks", json={"title": "plain task"}, headers=headers)

    events = client.get("/api/calendar-events", headers=headers).json()
    assert [e["title"] for e in events] == ["Design review"]


def test_update_and_delete_event(client: TestClient, auth_context: dict, other_auth_context: dict) -> None:
    headers = auth_context["headers"]
    event = client.post("/api/calendar-events", json=EVENT, headers=headers).json()

    response = client.put(
        f"/api/calendar-events/{event['id']}",
        json={"title": "Moved review", "start": "2025-06-11T09:00:00Z", "end": "2025-06-11T10:00:00Z"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Moved review"
    assert response.json()["start"].startswith("2025-06-11T09:00:00")

    other = other_auth_context["headers"]
    assert client.get(f"/api/calendar-events/{event['id']}", headers=other).status_code == 404
    assert client.delete(f"/api/calendar-events/{event['id']}", headers=other).status_code == 404
    assert client.delete(f"/api/calendar-events/{event['id']}", headers=headers).status_code == 200


def test_plain_task_is_not_an_event(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    task = client.post("/api/tasks", json={"title": "plain task"}, headers=headers).json()["task"]
    assert client.get(f"/api/calendar-events/{task['id']}", headers=headers).status_code == 404


def test_end_is_reported_in_utc_with_offset(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    event = client.post(
        "/api/calendar-events",
        json={**EVENT, "start": "2025-06-10T11:00:00+02:00", "end": "2025-06-10T12:30:00+02:00"},
        headers=headers,
    ).json()
    assert event["start"] == "2025-06-10T09:00:00+00:00"
    assert event["end"] == "2025-06-10T10:30:00+00:00"

    listed = client.get("/api/calendar-events", headers=headers).json()
    assert listed[0]["end"] == "2025-06-10T10:30:00+00:00"


def test_create_rejects_end_before_start(client: TestClient, auth_context: dict) -> None:
    response = client.post(
        "/api/calendar-events",
        json={**EVENT, "end": "2025-06-10T08:00:00Z"},
        headers=auth_context["headers"],
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Event cannot end before it starts"


def test_update_cannot_move_end_before_start(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    event = client.post("/api/calendar-events", json=EVENT, headers=headers).json()

    response = client.put(f"/api/calendar-events/{event['id']}", json={"end": "2025-06-10T08:00:00Z"},
                          headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Event cannot end before it starts"

    response = client.put(f"/api/calendar-events/{event['id']}", json={"start": "2025-06-10T11:00:00Z"},
                          headers=headers)
    assert response.status_code == 400

    # Unchanged after the rejected updates
    stored = client.get(f"/api/calendar-events/{event['id']}", headers=headers).json()
    assert stored["start"] == "2025-06-10T09:00:00+00:00"
    assert stored["end"] == "2025-06-10T10:00:00+00:00"

    response = client.put(
        f"/api/calendar-events/{event['id']}",
        json={"start": "2025-06-10T11:00:00Z", "end": "2025-06-10T12:00:00Z"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["end"] == "2025-06-10T12:00:00+00:00"
