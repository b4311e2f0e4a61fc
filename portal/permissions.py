"""
Role based permission classes.

Only administrators and coordinators may use the API; registering new
portal accounts is reserved for administrators.
"""
from rest_framework.permissions import BasePermission

PORTAL_ROLES = {"admin", "coordinator"}


class IsPortalUser(BasePermission):
    """Allow access to administrators and coordinators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in PORTAL_ROLES)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == "admin")
