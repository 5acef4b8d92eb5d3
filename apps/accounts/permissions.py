from rest_framework.permissions import BasePermission

class IsCustomer(BasePermission):
    message = "Not a customer token"

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated and
            not request.user.is_admin
        )

class IsAdmin(BasePermission):
    message = "Not an admin token"

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated and
            request.user.is_admin
        )

class IsSuperAdmin(BasePermission):
    message = "Superadmin access required"

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated and
            request.user.is_superadmin
        )
