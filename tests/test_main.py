from fastapi.testclient import TestClient
from sqlmodel import Session, select

from todo_api.auth import create_access_token
from todo_api.models import User

from conftest import auth_headers, register_user


def test_read_root(client: TestClient):
    """
    Test the root endpoint.
    """
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Todo API!"}


# --- Registration ---

def test_register_user(client: TestClient):
    """
    Test user registration and that the new credentials can log in.
    """
    data = register_user(client, email="test@example.com", password="strong-password", name="Test User")
    assert data["status"] == "success"
    assert data["message"] == "User successfully registered"
    assert data["authorization"]["type"] == "bearer"
    assert data["authorization"]["token"]
    assert data["user"]["email"] == "test@example.com"
    assert data["user"]["name"] == "Test User"
    assert "id" in data["user"]
    assert "created_at" in data["user"]
    assert "updated_at" in data["user"]

    login_response = client.post(
        "/auth/login",
        json={"email": "test@example.com", "password": "strong-password"},
    )
    assert login_response.status_code == 200
    login_data = login_response.json()
    assert login_data["message"] == "Login successful"
    assert login_data["user"]["id"] == data["user"]["id"]
    assert login_data["authorization"]["type"] == "bearer"


def test_register_never_returns_password(client: TestClient, test_db_session: Session):
    data = register_user(client, password="secret-pass")
    assert "password" not in data["user"]
    assert "hashed_password" not in data["user"]

    stored = test_db_session.exec(select(User)).one()
    assert stored.hashed_password != "secret-pass"
    assert stored.hashed_password not in str(data)


def test_register_existing_user(client: TestClient, test_db_session: Session):
    """
    Test registering a user with an already existing email.
    """
    register_user(client, email="existing@example.com")
    response = client.post(
        "/auth/register",
        json={
            "name": "Someone Else",
            "email": "existing@example.com",
            "password": "another-password",
            "password_confirmation": "another-password",
        },
    )
    assert response.status_code == 422
    body = response.json()
    assert body["errors"]["email"] == ["The email has already been taken."]
    assert len(test_db_session.exec(select(User)).all()) == 1


def test_register_email_is_case_insensitive(client: TestClient):
    register_user(client, email="Mixed@Example.com")
    response = client.post(
        "/auth/register",
        json={
            "name": "Dup",
            "email": "mixed@example.com",
            "password": "password123",
            "password_confirmation": "password123",
        },
    )
    assert response.status_code == 422
    assert "email" in response.json()["errors"]

    login = client.post("/auth/login", json={"email": "MIXED@example.com", "password": "password123"})
    assert login.status_code == 200


def test_register_reports_all_invalid_fields(client: TestClient):
    register_user(client, email="taken@example.com")
    response = client.post(
        "/auth/register",
        json={
            "email": "taken@example.com",
            "password": "123",
            "password_confirmation": "456",
        },
    )
    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Validation failed"
    errors = body["errors"]
    assert errors["name"] == ["The name field is required."]
    assert errors["email"] == ["The email has already been taken."]
    assert "password" in errors


def test_register_password_confirmation_mismatch(client: TestClient):
    response = client.post(
        "/auth/register",
        json={
            "name": "John",
            "email": "john@example.com",
            "password": "password123",
            "password_confirmation": "password124",
        },
    )
    assert response.status_code == 422
    assert response.json()["errors"]["password_confirmation"] == ["The password confirmation does not match."]


def test_register_invalid_email(client: TestClient):
    response = client.post(
        "/auth/register",
        json={
            "name": "John",
            "email": "not-an-email",
            "password": "password123",
            "password_confirmation": "password123",
        },
    )
    assert response.status_code == 422
    assert "email" in response.json()["errors"]


# --- Login ---

def test_login_invalid_credentials(client: TestClient):
    """
    Unknown email and wrong password must be indistinguishable.
    """
    unknown = client.post(
        "/auth/login",
        json={"email": "nonexistent@example.com", "password": "bad-password"},
    )
    assert unknown.status_code == 401
    assert unknown.json() == {"error": "Invalid credentials"}

    register_user(client, email="user@example.com", password="strong-password")
    wrong_password = client.post(
        "/auth/login",
        json={"email": "user@example.com", "password": "bad-password"},
    )
    assert wrong_password.status_code == unknown.status_code
    assert wrong_password.json() == unknown.json()


def test_login_validation(client: TestClient):
    response = client.post("/auth/login", json={"password": "short"})
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["email"] == ["The email field is required."]
    assert "password" in errors


# --- Authenticated auth endpoints ---

def test_me(client: TestClient, token: str):
    response = client.get("/auth/me", headers=auth_headers(token))
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["user"]["email"] == "john@example.com"
    assert "hashed_password" not in body["user"]


def test_me_unauthenticated(client: TestClient):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthenticated."}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_me_with_garbage_token(client: TestClient):
    response = client.get("/auth/me", headers=auth_headers("not.a.jwt"))
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthenticated."}


def test_me_for_deleted_user(client: TestClient):
    response = client.get("/auth/me", headers=auth_headers(create_access_token(9999)))
    assert response.status_code == 401


def test_logout_invalidates_token(client: TestClient, token: str):
    response = client.post("/auth/logout", headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json() == {"status": "success", "message": "Successfully logged out"}

    assert client.get("/auth/me", headers=auth_headers(token)).status_code == 401
    assert client.get("/todos", headers=auth_headers(token)).status_code == 401
    assert client.post("/auth/logout", headers=auth_headers(token)).status_code == 401


def test_logout_leaves_other_tokens_valid(client: TestClient, token: str):
    second = client.post("/auth/login", json={"email": "john@example.com", "password": "password123"})
    second_token = second.json()["authorization"]["token"]

    client.post("/auth/logout", headers=auth_headers(token))

    assert client.get("/auth/me", headers=auth_headers(second_token)).status_code == 200


def test_refresh(client: TestClient, token: str):
    response = client.post("/auth/refresh", headers=auth_headers(token))
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["user"]["email"] == "john@example.com"
    assert body["authorization"]["type"] == "bearer"
    new_token = body["authorization"]["token"]
    assert new_token != token

    assert client.get("/auth/me", headers=auth_headers(new_token)).status_code == 200
    assert client.get("/auth/me", headers=auth_headers(token)).status_code == 401


def test_refresh_unauthenticated(client: TestClient):
    response = client.post("/auth/refresh")
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthenticated."}


def test_logout_unauthenticated(client: TestClient):
    response = client.post("/auth/logout")
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthenticated."}
