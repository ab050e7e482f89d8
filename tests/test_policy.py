import pytest

from app.dependencies.policy import POLICY, allowed_roles
from app.models.user import UserRole

ADMIN, STAFF, MEMBER = UserRole.ADMIN, UserRole.STAFF, UserRole.MEMBER


@pytest.mark.parametrize("resource", ["members", "payments", "expenses", "vehicles", "trips", "maintenance"])
def test_crud_resources(resource):
    assert allowed_roles(resource, "read") == {ADMIN, STAFF, MEMBER}
    assert allowed_roles(resource, "create") == {ADMIN, STAFF}
    assert allowed_roles(resource, "update") == {ADMIN, STAFF}
    assert allowed_roles(resource, "delete") == {ADMIN}


def test_special_actions():
    assert allowed_roles("expenses", "decide") == {ADMIN}
    assert allowed_roles("vehicles", "status") == {ADMIN, STAFF}
    assert allowed_roles("trips", "transition") == {ADMIN, STAFF}
    assert allowed_roles("maintenance", "complete") == {ADMIN, STAFF}
    assert allowed_roles("reports", "dashboard") == {ADMIN, STAFF, MEMBER}
    assert allowed_roles("reports", "read") == {ADMIN, STAFF}
    assert allowed_roles("reports", "export") == {ADMIN}
    assert allowed_roles("pdf", "read") == {ADMIN, STAFF, MEMBER}


def test_unknown_rule_raises():
    with pytest.raises(LookupError):
        allowed_roles("members", "archive")
    assert "archive" not in POLICY["members"]


def test_forbidden_response_lists_roles(client, member_user):
    response = client.delete("/api/members/1", headers=member_user["headers"])

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Access denied. Required roles: admin"}
