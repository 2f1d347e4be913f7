"""
Role based permission classes for the clinical endpoints.
"""
from rest_framework.permissions import BasePermission

CLINICAL_ROLES = {"DOCTOR", "NURSE", "ADMIN"}
PRESCRIBER_ROLES = {"DOCTOR", "ADMIN"}


class IsClinicalStaff(BasePermission):
    """Doctors, nurses and administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in CLINICAL_ROLES)


class IsPrescriber(BasePermission):
    """Doctors and administrators: drug checks and the risk dashboard."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in PRESCRIBER_ROLES)


def practitioner_scope(user):
    """Doctors only see their own patients; nurses and admins see everyone."""
    return user.pk if getattr(user, "role", None) == "DOCTOR" else None
