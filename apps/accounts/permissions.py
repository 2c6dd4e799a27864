from rest_framework.permissions import BasePermission


class IsOrderStaff(BasePermission):
    """
    Admin, Manager, Sales and SuperAdmin roles (or Django superusers).
    """
    message = "Sales access required."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_order_staff


class IsAdmin(BasePermission):
    message = "Admin access required."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_admin_role
