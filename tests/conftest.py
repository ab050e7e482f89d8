"""Shared fixtures: an in-memory database, a test client and signed-in users"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from app.db.session import Database
from app.main import create_app
from app.models.user import User, UserRole
from app.services.file_storage import file_storage
from app.utils.auth import create_access_token, get_password_hash
from factories import PASSWORD, member_payload, vehicle_payload


@pytest.fixture
def database():
    db = Database(
        "sqlite://",
        engine_options={"connect_args": {"check_same_thread": False}, "poolclass": StaticPool},
    )
    yield db
    db.dispose()


@pytest.fixture
def client(database):
    app = create_app(database=database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client, database):
    def _make(username: str, role: UserRole, email: str = None) -> dict:
        session = database.session()
        try:
            user = User(
                username=username,
                email=email or f"{username}@alkhair.org",
                password_hash=get_password_hash(PASSWORD),
                full_name=f"{username.title()} User",
                role=role,
            )
            session.add(user)
            session.commit()
            token = create_access_token(data={"sub": str(user.id), "role": role.value})
            return {
                "id": user.id,
                "email": user.email,
                "headers": {"Authorization": f"Bearer {token}"},
            }
        finally:
            session.close()

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture
def staff(make_user):
    return make_user("staff", UserRole.STAFF)


@pytest.fixture
def member_user(make_user):
    return make_user("viewer", UserRole.MEMBER)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(file_storage, "base_dir", str(tmp_path))
    monkeypatch.setattr(file_storage, "backend", "local")
    return tmp_path


@pytest.fixture
def create_member(client, staff):
    def _create(national_id: str = "1000000001", **overrides) -> dict:
        response = client.post("/api/members", json=member_payload(national_id, **overrides), headers=staff["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def create_vehicle(client, staff):
    def _create(license_plate: str = "ABC-1234", **overrides) -> dict:
        response = client.post("/api/vehicles", json=vehicle_payload(license_plate, **overrides), headers=staff["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
