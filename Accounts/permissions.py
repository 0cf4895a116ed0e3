from rest_framework.permissions import BasePermission

from Accounts.models import User


class IsCandidate(BasePermission):
    message = "Only candidates can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == User.ROLE_CANDIDATE)


class IsRecruiter(BasePermission):
    """Recruiters and platform admins that belong to a company."""

    message = "Only recruiters with a company can perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if user.role not in (User.ROLE_RECRUITER, User.ROLE_ADMIN):
            return False
        return user.company_id is not None


class IsPlatformAdmin(BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == User.ROLE_ADMIN)
