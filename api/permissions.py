"""
Residence-scoped permissions - users only act inside the residence on their profile
"""
from rest_framework import permissions

from core.constants import UserRole


class HasResidence(permissions.BasePermission):
    """
    Authenticated users with a residence assigned.
    """
    message = "You must have a residence assigned to perform this action"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.residence_id)


class IsSyndic(HasResidence):
    """
    Permission to allow the syndic role only
    """
    message = "Only syndics can perform this action"

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.user.role == UserRole.SYNDIC

