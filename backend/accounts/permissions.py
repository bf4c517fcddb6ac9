from rest_framework.permissions import BasePermission


class IsStudioAdmin(BasePermission):
    """
    Allow access only to studio admins (role ADMIN).
    Superusers automatically pass.
    """

    message = "Admin access required."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_studio_admin
