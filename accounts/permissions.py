from rest_framework import permissions


class IsShopAdminOrReadOnly(permissions.BasePermission):
    """Authenticated reads; writes for shop admins only."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return getattr(request.user, 'is_shop_admin', False)


class CanEditTicketsOrReadOnly(permissions.BasePermission):
    """Authenticated reads; writes for admins and staff (viewers are read-only)."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return getattr(request.user, 'can_edit_tickets', False)
