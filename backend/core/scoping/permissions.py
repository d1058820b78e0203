from rest_framework.permissions import BasePermission

from accounts.models import get_user_role
from scoping.roles import (
    DEFAULT_ROLE_MATRIX,
    ROLE_ADMIN,
    get_role_matrix_for_resource,
    is_elevated_role,
    role_can,
)


def _active_user(request):
    user = request.user
    if not user or not user.is_authenticated or not user.is_active:
        return None
    profile = getattr(user, "profile", None)
    if profile is not None and not profile.is_active and not user.is_superuser:
        return None
    return user


class IsActiveOperator(BasePermission):
    message = "User account is not active."

    def has_permission(self, request, view):
        return _active_user(request) is not None


class IsRoleAllowed(BasePermission):
    message = "User role is not allowed for this action."

    def has_permission(self, request, view):
        user = _active_user(request)
        if user is None:
            return False

        role_matrix = getattr(view, "role_matrix", None)
        if role_matrix is None:
            resource_key = getattr(view, "resource_key", None)
            if resource_key:
                role_matrix = get_role_matrix_for_resource(resource_key)
            else:
                role_matrix = DEFAULT_ROLE_MATRIX

        return role_can(role_matrix, get_user_role(user), request.method)


class IsElevatedRole(BasePermission):
    message = "Only ADMIN or MANAGER users can perform this action."

    def has_permission(self, request, view):
        user = _active_user(request)
        return user is not None and is_elevated_role(get_user_role(user))


class IsAdminRole(BasePermission):
    message = "Only ADMIN users can perform this action."

    def has_permission(self, request, view):
        user = _active_user(request)
        return user is not None and get_user_role(user) == ROLE_ADMIN
