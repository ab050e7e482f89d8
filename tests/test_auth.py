from datetime import timedelta

from app.api.v1 import auth as auth_api
from app.models.user import UserRole
from app.utils.auth import create_access_token

from factories import PASSWORD


def register(client, **overrides):
    payload = {
        "username": "khalid",
        "email": "Khalid@AlKhair.org",
        "password": "secret123",
        "fullName": "Khalid Omar",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_returns_token_and_user(client):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["username"] == "khalid"
    assert body["user"]["email"] == "khalid@alkhair.org"
    assert body["user"]["role"] == "member"
    assert "passwordHash" not in body["user"]


def test_register_accepts_requested_role(client):
    response = register(client, role="staff")

    assert response.status_code == 201
    assert response.json()["user"]["role"] == "staff"


def test_register_rejects_duplicate_username_and_email(client):
    register(client)

    same_username = register(client, email="other@alkhair.org")
    assert same_username.status_code == 400
    assert same_username.json() == {"success": False, "message": "Username already exists"}

    same_email = register(client, username="another", email="khalid@alkhair.org")
    assert same_email.status_code == 400
    assert same_email.json()["message"] == "Email already registered"


def test_register_validates_payload(client):
    response = register(client, password="123", email="not-an-email")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"password", "email"} <= fields


def test_login_and_me(client):
    register(client)

    login = client.post("/api/auth/login", json={"email": "KHALID@alkhair.org", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    data = me.json()["data"]
    assert data["username"] == "khalid"
    assert data["lastLogin"] is not None


def test_login_failures_share_one_message(client, admin):
    wrong_password = client.post("/api/auth/login", json={"email": admin["email"], "password": "wrong-pass"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@alkhair.org", "password": PASSWORD})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"success": False, "message": "Invalid credentials"}


def test_protected_route_requires_token(client):
    response = client.get("/api/members")

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized to access this route"


def test_invalid_and_expired_tokens_are_rejected(client, admin):
    garbage = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401
    assert garbage.json()["message"] == "Could not validate credentials"

    expired = create_access_token({"sub": str(admin["id"])}, expires_delta=timedelta(minutes=-5))
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_token_for_missing_user_is_rejected(client):
    token = create_access_token({"sub": "9999", "role": UserRole.ADMIN.value})

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_change_password(client, staff):
    wrong = client.put(
        "/api/auth/resetpassword",
        json={"currentPassword": "not-it", "newPassword": "brand-new"},
        headers=staff["headers"],
    )
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Current password is incorrect"

    changed = client.put(
        "/api/auth/resetpassword",
        json={"currentPassword": PASSWORD, "newPassword": "brand-new"},
        headers=staff["headers"],
    )
    assert changed.status_code == 200

    old_login = client.post("/api/auth/login", json={"email": staff["email"], "password": PASSWORD})
    new_login = client.post("/api/auth/login", json={"email": staff["email"], "password": "brand-new"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_forgot_password(client, staff):
    known = client.post("/api/auth/forgotpassword", json={"email": staff["email"]})
    unknown = client.post("/api/auth/forgotpassword", json={"email": "ghost@alkhair.org"})

    assert known.status_code == 200
    assert known.json()["success"] is True
    assert unknown.status_code == 404
    assert unknown.json()["message"] == "No user with that email"


def test_list_users_is_admin_only(client, admin, staff):
    listing = client.get("/api/auth/users", headers=admin["headers"])
    assert listing.status_code == 200
    assert listing.json()["count"] == 2

    forbidden = client.get("/api/auth/users", headers=staff["headers"])
    assert forbidden.status_code == 403


def test_unique_index_backs_up_register_check(client, monkeypatch):
    register(client)
    monkeypatch.setattr(auth_api, "find_existing_user", lambda *args, **kwargs: None)

    response = register(client)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Username or email already exists"}
