from rest_framework.permissions import BasePermission


ROLE_ADMIN = "admin"
ROLE_CANDIDATE = "candidate"
ROLE_MENTOR = "mentor"
APP_ROLES = {ROLE_ADMIN, ROLE_CANDIDATE, ROLE_MENTOR}


def user_role(user):
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return ROLE_ADMIN
    profile = getattr(user, "userprofile", None)
    return profile.role if profile else None


class IsAuthenticatedWithAppRole(BasePermission):
    def has_permission(self, request, view):
        role = user_role(request.user)
        return bool(role in APP_ROLES)


class IsAdminRole(BasePermission):
    def has_permission(self, request, view):
        return user_role(request.user) == ROLE_ADMIN


class IsCandidateRole(BasePermission):
    message = "Only students can perform this action."

    def has_permission(self, request, view):
        return user_role(request.user) == ROLE_CANDIDATE


class IsMentorRole(BasePermission):
    message = "Only mentors can perform this action."

    def has_permission(self, request, view):
        return user_role(request.user) == ROLE_MENTOR
