def test_register_success(client):
    payload = {
        "email": "user1@example.com",
        "password": "StrongPass123",
        "role": "attendee",
    }

    response = client.post("/auth/register", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == payload["email"]
    assert data["role"] == payload["role"]
    assert data["is_active"] is True
    assert "id" in data


def test_register_defaults_to_attendee_role(client):
    response = client.post(
        "/auth/register",
        json={"email": "norole@example.com", "password": "StrongPass123"},
    )

    assert response.status_code == 201
    assert response.json()["role"] == "attendee"


def test_register_duplicate_email(client):
    payload = {
        "email": "duplicate@example.com",
        "password": "StrongPass123",
        "role": "attendee",
    }

    first = client.post("/auth/register", json=payload)
    second = client.post("/auth/register", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "User with this email already exists"


def test_register_rejects_short_password(client):
    response = client.post(
        "/auth/register",
        json={"email": "short@example.com", "password": "short"},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_login_success(client):
    payload = {
        "email": "login@example.com",
        "password": "StrongPass123",
        "role": "organizer",
    }
    client.post("/auth/register", json=payload)

    response = client.post(
        "/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert isinstance(data["access_token"], str)
    assert len(data["access_token"]) > 20


def test_login_wrong_password(client):
    payload = {"email": "wrongpass@example.com", "password": "StrongPass123"}
    client.post("/auth/register", json=payload)

    response = client.post(
        "/auth/login",
        json={"email": payload["email"], "password": "WrongPass123"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_users_me_with_token(client):
    payload = {
        "email": "me@example.com",
        "password": "StrongPass123",
        "role": "attendee",
    }
    client.post("/auth/register", json=payload)
    login = client.post(
        "/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    token = login.json()["access_token"]

    response = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == payload["email"]
    assert data["role"] == payload["role"]


def test_users_me_without_token(client):
    response = client.get("/users/me")
    assert response.status_code == 401


def test_users_me_with_garbage_token(client):
    response = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
