import os
from datetime import datetime

# Settings must be in place before todo_api.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from fastapi.testclient import TestClient
from sqlmodel import create_engine, SQLModel, Session
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
import pytest

# --- Test Database Setup ---
# Use an in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(name="test_engine")
def test_engine_fixture():
    # Use StaticPool to ensure the same connection is always returned for in-memory DB
    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import todo_api.models  # noqa: F401
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="test_db_session")
def test_db_session_fixture(test_engine: Engine):
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(test_db_session: Session):
    # Imported here so the environment above is set before the app loads
    from todo_api.main import app
    from todo_api.database import get_session

    def get_session_override():
        return test_db_session

    app.dependency_overrides[get_session] = get_session_override

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


# --- Helpers ---

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def parse_timestamp(value: str) -> datetime:
    # pydantic writes UTC as a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def register_user(client: TestClient, email: str = "john@example.com", password: str = "password123", name: str = "John Doe"):
    response = client.post(
        "/auth/register",
        json={
            "name": name,
            "email": email,
            "password": password,
            "password_confirmation": password,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture(name="token")
def token_fixture(client: TestClient) -> str:
    """
    Registers a user and returns their bearer token.
    """
    return register_user(client)["authorization"]["token"]


@pytest.fixture(name="other_token")
def other_token_fixture(client: TestClient) -> str:
    return register_user(client, email="jane@example.com", name="Jane Roe")["authorization"]["token"]


@pytest.fixture(name="authenticated_client")
def authenticated_client_fixture(client: TestClient, token: str):
    """
    Client with the registered user's Authorization header set.
    """
    client.headers["Authorization"] = f"Bearer {token}"
    return client
