from app.config import settings

from factories import expense_payload


def test_create_expense_starts_pending(client, staff):
    response = client.post("/api/expenses", json=expense_payload(), headers=staff["headers"])

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["approvalStatus"] == "pending"
    assert data["spentBy"]["id"] == staff["id"]
    assert data["approvedBy"] is None
    assert data["amount"] == 80.0


def test_members_cannot_record_expenses(client, member_user):
    response = client.post("/api/expenses", json=expense_payload(), headers=member_user["headers"])

    assert response.status_code == 403


def test_approve_and_reject_are_admin_only(client, admin, staff):
    expense = client.post("/api/expenses", json=expense_payload(), headers=staff["headers"]).json()["data"]

    forbidden = client.put(f"/api/expenses/{expense['id']}/approve", headers=staff["headers"])
    assert forbidden.status_code == 403

    approved = client.put(f"/api/expenses/{expense['id']}/approve", headers=admin["headers"])
    assert approved.status_code == 200
    data = approved.json()["data"]
    assert data["approvalStatus"] == "approved"
    assert data["approvedBy"]["id"] == admin["id"]


def test_decision_can_be_overridden_by_default(client, admin, staff):
    expense = client.post("/api/expenses", json=expense_payload(), headers=staff["headers"]).json()["data"]
    client.put(f"/api/expenses/{expense['id']}/approve", headers=admin["headers"])

    rejected = client.put(f"/api/expenses/{expense['id']}/reject", headers=admin["headers"])

    assert rejected.status_code == 200
    assert rejected.json()["data"]["approvalStatus"] == "rejected"


def test_decision_is_final_when_override_disabled(client, admin, staff, monkeypatch):
    monkeypatch.setattr(settings, "EXPENSE_ALLOW_DECISION_OVERRIDE", False)
    expense = client.post("/api/expenses", json=expense_payload(), headers=staff["headers"]).json()["data"]
    client.put(f"/api/expenses/{expense['id']}/reject", headers=admin["headers"])

    response = client.put(f"/api/expenses/{expense['id']}/approve", headers=admin["headers"])

    assert response.status_code == 400
    assert response.json()["message"] == "Expense has already been rejected"


def test_list_expenses_filters(client, admin, staff):
    first = client.post("/api/expenses", json=expense_payload(), headers=staff["headers"]).json()["data"]
    client.post("/api/expenses", json=expense_payload(category="rent", amount=500, date="2024-01-15T00:00:00"), headers=staff["headers"])
    client.put(f"/api/expenses/{first['id']}/approve", headers=admin["headers"])

    approved = client.get("/api/expenses?approvalStatus=approved", headers=staff["headers"]).json()
    assert [e["id"] for e in approved["data"]] == [first["id"]]

    rent = client.get("/api/expenses?category=rent", headers=staff["headers"]).json()
    assert rent["count"] == 1

    january = client.get("/api/expenses?startDate=2024-01-01&endDate=2024-01-31", headers=staff["headers"]).json()
    assert [e["category"] for e in january["data"]] == ["rent"]


def test_update_and_delete_expense(client, admin, staff):
    expense = client.post("/api/expenses", json=expense_payload(), headers=staff["headers"]).json()["data"]

    updated = client.put(f"/api/expenses/{expense['id']}", json={"purpose": "Water bill"}, headers=staff["headers"])
    assert updated.json()["data"]["purpose"] == "Water bill"
    assert updated.json()["data"]["category"] == "utilities"

    assert client.delete(f"/api/expenses/{expense['id']}", headers=staff["headers"]).status_code == 403
    assert client.delete(f"/api/expenses/{expense['id']}", headers=admin["headers"]).status_code == 200
    assert client.get(f"/api/expenses/{expense['id']}", headers=admin["headers"]).status_code == 404
