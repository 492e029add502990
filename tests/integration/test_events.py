def _register_and_login(client, email: str, role: str) -> str:
    payload = {"email": email, "password": "StrongPass123", "role": role}
    register_response = client.post("/auth/register", json=payload)
    assert register_response.status_code == 201

    login_response = client.post(
        "/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert login_response.status_code == 200
    return login_response.json()["access_token"]


def test_organizer_can_create_and_read_event(client):
    token = _register_and_login(client, "ev-org@example.com", "organizer")

    create_response = client.post(
        "/events",
        headers={"Authorization": f"Bearer {token}"},
        json={
            "title": "Board Game Night",
            "location": "Community Hall",
            "start_at": "2026-11-01T18:00:00Z",
            "end_at": "2026-11-01T22:00:00Z",
            "max_attendees": 12,
        },
    )
    assert create_response.status_code == 201
    created = create_response.json()
    assert created["title"] == "Board Game Night"
    assert created["max_attendees"] == 12
    assert created["is_public"] is False

    get_response = client.get(f"/events/{created['id']}", headers={"Authorization": f"Bearer {token}"})
    assert get_response.status_code == 200
    assert get_response.json()["id"] == created["id"]

    mine = client.get("/events/me", headers={"Authorization": f"Bearer {token}"})
    assert mine.status_code == 200
    assert [event["id"] for event in mine.json()] == [created["id"]]


def test_attendee_cannot_create_event(client):
    token = _register_and_login(client, "ev-att@example.com", "attendee")

    response = client.post(
        "/events",
        headers={"Authorization": f"Bearer {token}"},
        json={"title": "Not allowed"},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Not enough permissions"


def test_event_rejects_inverted_interval(client):
    token = _register_and_login(client, "ev-interval@example.com", "organizer")

    response = client.post(
        "/events",
        headers={"Authorization": f"Bearer {token}"},
        json={
            "title": "Backwards",
            "start_at": "2026-11-01T22:00:00Z",
            "end_at": "2026-11-01T18:00:00Z",
        },
    )

    assert response.status_code == 422


def test_get_unknown_event_returns_not_found(client):
    token = _register_and_login(client, "ev-404@example.com", "attendee")

    response = client.get("/events/missing", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"
