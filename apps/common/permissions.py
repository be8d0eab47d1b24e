"""
Common permissions for the editorial workflow API.

These only gate access to endpoints. Who may move a submission to which
status is decided by the authorization table in apps.submissions.workflow.
"""
from rest_framework import permissions

from apps.users.models import EDITOR_ROLES, TIME_LIMIT_ADMIN_ROLES


def profile_role(profile):
    """Return the workflow role of a Profile. Superusers act as admin."""
    if profile is None:
        return None
    if profile.user.is_superuser:
        return 'admin'
    return profile.role


def actor_role(user):
    """Return the workflow role of an authenticated user, or None."""
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return 'admin'
    return profile_role(getattr(user, 'profile', None))


class IsAdminOrEditor(permissions.BasePermission):
    """
    Allows access only to administrators and editor-family roles.
    """

    message = "You must be an admin or editor to access this resource."

    def has_permission(self, request, view):
        role = actor_role(request.user)
        return role == 'admin' or role in EDITOR_ROLES


class CanConfigureTimeLimits(permissions.BasePermission):
    """
    Read access for editorial staff, writes for admins and senior editors.
    """

    message = "You must be an administrator, managing editor or editor-in-chief to change time limits."

    def has_permission(self, request, view):
        role = actor_role(request.user)
        if request.method in permissions.SAFE_METHODS:
            return role == 'admin' or role in EDITOR_ROLES
        return role in TIME_LIMIT_ADMIN_ROLES
