# API v1 routers
# This file ensures all routers are properly exported

from . import (
    auth,
    members,
    payments,
    expenses,
    vehicles,
    trips,
    maintenance,
    reports,
    pdf
)

__all__ = [
    "auth",
    "members",
    "payments",
    "expenses",
    "vehicles",
    "trips",
    "maintenance",
    "reports",
    "pdf"
]
