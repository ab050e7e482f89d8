"""
Role-based access policy

Every protected route names a (resource, action) pair; the roles allowed for
that pair live in one table below.
"""
from typing import Dict, FrozenSet

from fastapi import Depends, HTTPException, status

from app.dependencies.auth import get_current_user
from app.models.user import User, UserRole

ANY_ROLE = frozenset({UserRole.ADMIN, UserRole.STAFF, UserRole.MEMBER})
OPERATORS = frozenset({UserRole.ADMIN, UserRole.STAFF})
ADMIN_ONLY = frozenset({UserRole.ADMIN})

_CRUD = {
    "read": ANY_ROLE,
    "create": OPERATORS,
    "update": OPERATORS,
    "upload": OPERATORS,
    "delete": ADMIN_ONLY,
}

POLICY: Dict[str, Dict[str, FrozenSet[UserRole]]] = {
    "members": dict(_CRUD),
    "payments": dict(_CRUD),
    "expenses": {**_CRUD, "decide": ADMIN_ONLY},
    "vehicles": {**_CRUD, "status": OPERATORS},
    "trips": {**_CRUD, "transition": OPERATORS},
    "maintenance": {**_CRUD, "complete": OPERATORS},
    "reports": {
        "dashboard": ANY_ROLE,
        "read": OPERATORS,
        "export": ADMIN_ONLY,
    },
    "pdf": {"read": ANY_ROLE},
    "users": {"read": ADMIN_ONLY},
}


def allowed_roles(resource: str, action: str) -> FrozenSet[UserRole]:
    try:
        return POLICY[resource][action]
    except KeyError:
        raise LookupError(f"No access rule for {resource}:{action}")


def authorize(resource: str, action: str):
    """
    Dependency factory for role-based access control
    Usage: Depends(authorize("vehicles", "delete"))
    """
    roles = allowed_roles(resource, action)

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(sorted(r.value for r in roles))}"
            )
        return current_user

    return role_checker
