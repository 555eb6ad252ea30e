"""
Privileged account functions: create-admin, create-user, delete-user.

These are called cross-origin by the storefront, so every response carries
CORS headers and a pre-flight OPTIONS request is answered with 204.
Callers of create-user and delete-user are authenticated here (not by the
DRF authentication classes) so that failures come back as {"error": ...}
with the CORS headers attached.
"""
import logging
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import AuthenticationFailed, ParseError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.authentication import JWTAuthentication

from .accounts import create_account, delete_account, admin_exists, AccountError, VALID_ROLES
from .models import Profile
from .permissions import get_profile, has_admin_permissions

logger = logging.getLogger('ssuniforms.core.functions')


def cors_headers():
    return {
        'Access-Control-Allow-Origin': settings.CORS_ALLOW_ORIGIN,
        'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
        'Access-Control-Allow-Methods': 'POST, OPTIONS',
    }


def cors_response(data=None, status_code=status.HTTP_200_OK):
    return Response(data, status=status_code, headers=cors_headers())


def preflight():
    return cors_response(status_code=status.HTTP_204_NO_CONTENT)


def read_body(request):
    """Request JSON body as a dict; raises ParseError on malformed input"""
    data = request.data
    if not hasattr(data, 'get'):
        raise ParseError('Request body must be a JSON object')
    return data


def authenticate_admin_caller(request):
    """
    Resolve the calling admin from the Authorization header.

    Returns (user, None) on success, or (None, error_response).
    """
    if not request.META.get('HTTP_AUTHORIZATION'):
        return None, cors_response({'error': 'No authorization header'}, status.HTTP_401_UNAUTHORIZED)

    try:
        result = JWTAuthentication().authenticate(request)
    except AuthenticationFailed:
        result = None

    if result is None:
        return None, cors_response({'error': 'Unauthorized'}, status.HTTP_401_UNAUTHORIZED)

    user, _token = result
    if not has_admin_permissions(get_profile(user)):
        logger.warning(f"Non-admin user {user.pk} attempted a privileged account call")
        return None, cors_response({'error': 'Admin access required'}, status.HTTP_403_FORBIDDEN)
    return user, None


@api_view(['POST', 'OPTIONS'])
@authentication_classes([])
@permission_classes([AllowAny])
def create_admin(request):
    """Bootstrap the first admin account; refused once any admin exists"""
    if request.method == 'OPTIONS':
        return preflight()

    try:
        body = read_body(request)
        email = body.get('email')
        password = body.get('password')
        name = body.get('name')

        if not email or not password or not name:
            return cors_response({'error': 'Email, password, and name are required'}, status.HTTP_400_BAD_REQUEST)

        if admin_exists():
            return cors_response({'error': 'Admin account already exists'}, status.HTTP_400_BAD_REQUEST)

        user = create_account(email, password, name, role=Profile.ROLE_ADMIN)
    except ParseError as e:
        return cors_response({'error': str(e)}, status.HTTP_400_BAD_REQUEST)
    except AccountError as e:
        return cors_response({'error': str(e)}, status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"create-admin failed: {str(e)}", exc_info=True)
        return cors_response({'error': str(e)}, status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Admin account {user.pk} created through admin setup")
    return cors_response({'success': True, 'user_id': user.pk})


@api_view(['POST', 'OPTIONS'])
@authentication_classes([])
@permission_classes([AllowAny])
def create_user(request):
    """Admin-only: create a staff or admin account"""
    if request.method == 'OPTIONS':
        return preflight()

    caller, error_response = authenticate_admin_caller(request)
    if error_response is not None:
        return error_response

    try:
        body = read_body(request)
        email = body.get('email')
        password = body.get('password')
        name = body.get('name')
        role = body.get('role') or Profile.ROLE_STAFF

        if not email or not password or not name:
            return cors_response({'error': 'Email, password, and name are required'}, status.HTTP_400_BAD_REQUEST)

        if role not in VALID_ROLES:
            return cors_response({'error': "Invalid role. Must be 'admin' or 'staff'"}, status.HTTP_400_BAD_REQUEST)

        user = create_account(email, password, name, role=role)
    except ParseError as e:
        return cors_response({'error': str(e)}, status.HTTP_400_BAD_REQUEST)
    except AccountError as e:
        return cors_response({'error': str(e)}, status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"create-user failed: {str(e)}", exc_info=True)
        return cors_response({'error': str(e)}, status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Admin {caller.pk} created {role} account {user.pk}")
    return cors_response({'success': True, 'user_id': user.pk})


@api_view(['POST', 'OPTIONS'])
@authentication_classes([])
@permission_classes([AllowAny])
def delete_user(request):
    """Admin-only: delete an account (never the caller's own)"""
    if request.method == 'OPTIONS':
        return preflight()

    caller, error_response = authenticate_admin_caller(request)
    if error_response is not None:
        return error_response

    try:
        body = read_body(request)
        user_id = body.get('userId')
        if not user_id:
            return cors_response({'error': 'User ID is required'}, status.HTTP_400_BAD_REQUEST)

        delete_account(user_id, acting_user=caller)
    except ParseError as e:
        return cors_response({'error': str(e)}, status.HTTP_400_BAD_REQUEST)
    except AccountError as e:
        return cors_response({'error': str(e)}, status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"delete-user failed: {str(e)}", exc_info=True)
        return cors_response({'error': str(e)}, status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Admin {caller.pk} deleted account {user_id}")
    return cors_response({'success': True})
