import shutil

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.db.session import Database, DatabaseConnectionError, mask_url
from app.main import create_app


def unreachable_database() -> Database:
    return Database("sqlite:////nonexistent-directory/charity.db", retry_delay=0)


def file_database(folder) -> Database:
    return Database(
        f"sqlite:///{folder}/charity.db",
        engine_options={"connect_args": {"check_same_thread": False}},
        retry_delay=0,
    )


def test_health_reports_connected_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["database"] == "connected"


def test_root_banner(client):
    body = client.get("/").json()

    assert body["success"] is True
    assert body["docs"] == "/docs"


def test_degraded_mode_answers_503():
    settings = Settings(DATABASE_FAIL_FAST=False)
    app = create_app(settings=settings, database=unreachable_database())

    with TestClient(app) as degraded:
        health = degraded.get("/health")
        assert health.status_code == 200
        assert health.json()["database"] == "disconnected"

        response = degraded.get("/api/members")
        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "message": "Database is not connected. Please try again later.",
        }


def test_fail_fast_refuses_to_start():
    settings = Settings(DATABASE_FAIL_FAST=True)
    app = create_app(settings=settings, database=unreachable_database())

    with pytest.raises(DatabaseConnectionError):
        with TestClient(app):
            pass


def test_fail_fast_defaults_by_environment():
    assert Settings(ENVIRONMENT="development").database_fail_fast is True
    assert Settings(ENVIRONMENT="production").database_fail_fast is False


def test_connect_retries_before_giving_up():
    database = Database("sqlite:////nonexistent-directory/charity.db", connect_retries=3, retry_delay=0)

    with pytest.raises(DatabaseConnectionError):
        database.connect()
    assert database.is_connected is False


def test_mask_url_hides_credentials():
    assert mask_url("postgresql://user:pw@db:5432/charity") == "postgresql://***:***@db:5432/charity"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_degraded_app_creates_tables_once_database_appears(tmp_path):
    folder = tmp_path / "later"
    app = create_app(settings=Settings(DATABASE_FAIL_FAST=False), database=file_database(folder))
    payload = {"username": "late", "email": "late@alkhair.org", "password": "secret123", "fullName": "Late Comer"}

    with TestClient(app) as degraded:
        before = degraded.post("/api/auth/register", json=payload)
        assert before.status_code == 503

        folder.mkdir()
        after = degraded.post("/api/auth/register", json=payload)
        assert after.status_code == 201, after.text
        assert degraded.get("/health").json()["database"] == "connected"


def test_health_notices_lost_database(tmp_path):
    folder = tmp_path / "data"
    folder.mkdir()
    database = file_database(folder)
    app = create_app(database=database)

    with TestClient(app) as client:
        assert client.get("/health").json()["database"] == "connected"

        database.engine.dispose()
        shutil.rmtree(folder)

        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["database"] == "disconnected"
