from rest_framework.permissions import BasePermission
from accounts.models import User


class IsAuthenticatedUser(BasePermission):
    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.is_active
        )


class IsReviewer(BasePermission):
    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.is_active
            and request.user.role in (User.Role.ADMIN, User.Role.REVIEWER)
        )


class SameVendor(BasePermission):
    """Vendor members only see their own vendor's documents; staff roles see all."""

    def has_object_permission(self, request, view, obj):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.user.role not in (User.Role.VENDOR_ADMIN, User.Role.VENDOR_USER):
            return True

        vendor_id = getattr(obj, "vendor_id", None)
        if vendor_id is None and hasattr(obj, "users"):
            vendor_id = obj.id

        return vendor_id is not None and vendor_id == request.user.vendor_id
