"""
Role policy - the sole authorization primitives.

Profiles may be Profile instances or plain dicts (as returned in API
payloads). Admin permissions are a superset of staff permissions and a
missing profile satisfies neither.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import Profile

ADMIN = 'admin'
STAFF = 'staff'


def _role_of(profile):
    if profile is None:
        return None
    if isinstance(profile, dict):
        return profile.get('role')
    return getattr(profile, 'role', None)


def has_admin_permissions(profile) -> bool:
    return _role_of(profile) == ADMIN


def has_staff_permissions(profile) -> bool:
    return _role_of(profile) in (ADMIN, STAFF)


def get_profile(user):
    """Return the user's profile or None (anonymous, or no profile row yet)"""
    if user is None or not user.is_authenticated:
        return None
    try:
        return user.profile
    except Profile.DoesNotExist:
        return None


class IsAdminRole(BasePermission):
    """Allows access only to users whose profile role is admin"""
    message = 'Admin access required'

    def has_permission(self, request, view):
        return has_admin_permissions(get_profile(request.user))


class IsStaffRole(BasePermission):
    """Allows access to staff and admin profiles"""
    message = 'Staff access required'

    def has_permission(self, request, view):
        return has_staff_permissions(get_profile(request.user))


class IsAdminRoleOrReadOnly(BasePermission):
    """Anyone may read; writes require an admin profile"""
    message = 'Admin access required'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return has_admin_permissions(get_profile(request.user))
