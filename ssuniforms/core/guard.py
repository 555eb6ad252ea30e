"""
Route guard for the storefront and admin client routes.

A guard starts in LOADING and stays there until the identity and profile
lookups have finished; only then does it move to a terminal state. Nothing
but a loading indicator may be shown before that, so `should_render` is
only true once the guard has settled on AUTHORIZED.
"""
import enum
import logging

from .permissions import ADMIN, STAFF, has_admin_permissions, has_staff_permissions

logger = logging.getLogger(__name__)

LOGIN_ROUTE = '/login'
HOME_ROUTE = '/'

# Client route -> required role (None = public)
CLIENT_ROUTES = {
    '/': None,
    '/login': None,
    '/signup': None,
    '/admin-setup': None,
    '/catalogues': None,
    '/cart': None,
    '/admin': ADMIN,
    '/admin/catalogues': ADMIN,
    '/admin/items': ADMIN,
    '/admin/employees': ADMIN,
    '/admin/sales': ADMIN,
    '/admin/low-stock': ADMIN,
}


class GuardState(str, enum.Enum):
    LOADING = 'loading'
    UNAUTHENTICATED = 'unauthenticated'
    AUTHENTICATED_NO_PROFILE = 'authenticated_no_profile'
    AUTHORIZED = 'authorized'
    FORBIDDEN = 'forbidden'


class RouteGuard:
    """Gates a view subtree on signed-in state and required role"""

    def __init__(self, required_role=None, require_auth=True):
        if required_role not in (None, ADMIN, STAFF):
            raise ValueError(f"Unknown role requirement: {required_role}")
        self.required_role = required_role
        self.require_auth = require_auth
        self.state = GuardState.LOADING

    def resolve(self, user, profile):
        """Move from LOADING to a terminal state once lookups are done"""
        is_signed_in = user is not None and getattr(user, 'is_authenticated', False)

        if not self.require_auth:
            self.state = GuardState.AUTHORIZED
        elif not is_signed_in:
            self.state = GuardState.UNAUTHENTICATED
        elif profile is None:
            self.state = GuardState.AUTHENTICATED_NO_PROFILE
        elif self.required_role == ADMIN and not has_admin_permissions(profile):
            self.state = GuardState.FORBIDDEN
        elif self.required_role == STAFF and not has_staff_permissions(profile):
            self.state = GuardState.FORBIDDEN
        else:
            self.state = GuardState.AUTHORIZED
        return self.state

    @property
    def should_render(self):
        return self.state == GuardState.AUTHORIZED

    @property
    def redirect_to(self):
        if self.state in (GuardState.UNAUTHENTICATED, GuardState.AUTHENTICATED_NO_PROFILE):
            return LOGIN_ROUTE
        if self.state == GuardState.FORBIDDEN:
            return HOME_ROUTE
        return None


def normalize_route(path):
    if not path:
        return HOME_ROUTE
    path = '/' + path.strip().strip('/')
    return path


def guard_for_route(path):
    """Build the guard for a client route, or None when the route is unknown"""
    path = normalize_route(path)
    if path not in CLIENT_ROUTES:
        return None
    required_role = CLIENT_ROUTES[path]
    return RouteGuard(required_role=required_role, require_auth=required_role is not None)


def check_route_access(path, user, profile):
    """Resolve the guard for a route and describe the outcome"""
    path = normalize_route(path)
    guard = guard_for_route(path)
    if guard is None:
        return {
            'path': path,
            'state': None,
            'render': True,
            'redirect': None,
            'not_found': True,
        }

    guard.resolve(user, profile)
    if guard.redirect_to:
        logger.info(f"Route {path} resolved to {guard.state.value}, redirecting to {guard.redirect_to}")
    return {
        'path': path,
        'state': guard.state.value,
        'render': guard.should_render,
        'redirect': guard.redirect_to,
        'not_found': False,
    }
