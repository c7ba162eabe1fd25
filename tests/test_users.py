"""Tests for user endpoints."""

from fastapi.testclient import TestClient


def test_create_user(client: TestClient):
    """Test creating a user."""
    response = client.post(
        "/api/v1/users/",
        json={"name": "Test Parent", "timezone": "America/New_York", "comfort_buffer_minutes": 10},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Test Parent"
    assert data["timezone"] == "America/New_York"
    assert data["comfort_buffer_minutes"] == 10
    assert "id" in data


def test_create_user_default_comfort_buffer(client: TestClient):
    """Comfort buffer defaults to five minutes."""
    response = client.post("/api/v1/users/", json={"name": "Default Buffer"})
    assert response.status_code == 201
    assert response.json()["comfort_buffer_minutes"] == 5


def test_create_user_duplicate_email(client: TestClient):
    """Emails are unique."""
    client.post("/api/v1/users/", json={"name": "First", "email": "dup@example.com"})
    response = client.post("/api/v1/users/", json={"name": "Second", "email": "dup@example.com"})
    assert response.status_code == 409


def test_create_user_rejects_negative_buffer(client: TestClient):
    """Comfort buffer must not be negative."""
    response = client.post("/api/v1/users/", json={"name": "Bad", "comfort_buffer_minutes": -5})
    assert response.status_code == 422


def test_list_users(client: TestClient):
    """Test listing users."""
    client.post("/api/v1/users/", json={"name": "List Test User"})

    response = client.get("/api/v1/users/")
    assert response.status_code == 200
    data = response.json()
    assert isinstance(data, list)
    assert len(data) >= 1


def test_get_user(client: TestClient):
    """Test getting a user by ID."""
    create_response = client.post("/api/v1/users/", json={"name": "Get Test User"})
    user_id = create_response.json()["id"]

    response = client.get(f"/api/v1/users/{user_id}")
    assert response.status_code == 200
    assert response.json()["name"] == "Get Test User"


def test_get_user_not_found(client: TestClient):
    """Test getting a non-existent user."""
    response = client.get("/api/v1/users/99999")
    assert response.status_code == 404


def test_update_user(client: TestClient):
    """Test updating a user."""
    create_response = client.post("/api/v1/users/", json={"name": "Update Test User"})
    user_id = create_response.json()["id"]

    response = client.patch(
        f"/api/v1/users/{user_id}",
        json={"name": "Updated Name", "comfort_buffer_minutes": 15},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Updated Name"
    assert data["comfort_buffer_minutes"] == 15
