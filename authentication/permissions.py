from rest_framework import permissions

from .models import CustomUser


class IsStaffMember(permissions.BasePermission):
    """
    Permission to allow any active admin or waiter
    """
    message = 'Your account is not an active staff account.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_active and user.role in (CustomUser.ROLE_ADMIN, CustomUser.ROLE_WAITER)


class IsAdminRole(permissions.BasePermission):
    """
    Permission to only allow administrators
    """
    message = 'Only administrators can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_active and user.role == CustomUser.ROLE_ADMIN


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Staff may read; only administrators may write
    """

    def has_permission(self, request, view):
        if not IsStaffMember().has_permission(request, view):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.role == CustomUser.ROLE_ADMIN


class IsOrderOwnerOrAdmin(permissions.BasePermission):
    """
    Waiters only see the orders they settled
    """

    def has_object_permission(self, request, view, obj):
        if request.user.role == CustomUser.ROLE_ADMIN:
            return True
        return obj.waiter_id == request.user.id
