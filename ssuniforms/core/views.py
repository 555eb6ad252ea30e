import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import Profile
from .serializers import UserSerializer, ProfileSerializer, ProfileUpdateSerializer, SignupSerializer
from .permissions import IsAdminRole, get_profile, has_admin_permissions, has_staff_permissions
from .guard import check_route_access
from .accounts import create_account, AccountError

logger = logging.getLogger('ssuniforms.core')

User = get_user_model()


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """E-mail + password sign-in; the response also carries the user and profile"""

    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        profile = get_profile(self.user)
        data['user'] = UserSerializer(self.user).data
        data['profile'] = ProfileSerializer(profile).data if profile else None
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        profile = get_profile(user)
        token['email'] = user.email
        token['name'] = profile.name if profile else ''
        token['role'] = profile.role if profile else None
        return token


class EmailTokenObtainPairView(TokenObtainPairView):
    serializer_class = EmailTokenObtainPairSerializer


class SafeTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that handles deleted users gracefully"""

    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class SafeTokenRefreshView(TokenRefreshView):
    serializer_class = SafeTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def signup(request):
    """Self-service staff signup"""
    serializer = SignupSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        user = create_account(data['email'], data['password'], data['name'])
    except AccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'user': UserSerializer(user).data,
        'profile': ProfileSerializer(user.profile).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Sign out by blacklisting the refresh token"""
    refresh = request.data.get('refresh')
    if not refresh:
        return Response({'error': 'refresh token is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        RefreshToken(refresh).blacklist()
    except TokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.pk} logged out")
    return Response(status=status.HTTP_205_RESET_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current identity with its profile and permission tiers"""
    profile = get_profile(request.user)
    if profile is None:
        return Response({
            'error': 'Profile Setup Required',
            'message': 'Please contact administrator to set up your profile.',
            'user': UserSerializer(request.user).data,
        }, status=status.HTTP_404_NOT_FOUND)

    return Response({
        'user': UserSerializer(request.user).data,
        'profile': ProfileSerializer(profile).data,
        'role': profile.role,
        'is_admin': has_admin_permissions(profile),
        'is_staff_member': has_staff_permissions(profile),
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def route_access(request):
    """Resolve the client route guard for ?path= against the caller"""
    path = request.query_params.get('path', '/')
    return Response(check_route_access(path, request.user, get_profile(request.user)))


# Employee views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def employee_list(request):
    """All profiles, newest first, with per-role counts"""
    profiles = Profile.objects.select_related('user').order_by('-created_at')
    data = ProfileSerializer(profiles, many=True).data
    return Response({
        'employees': data,
        'admin_count': sum(1 for p in data if p['role'] == Profile.ROLE_ADMIN),
        'staff_count': sum(1 for p in data if p['role'] == Profile.ROLE_STAFF),
    })


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def employee_detail(request, pk):
    """Retrieve an employee or edit their name and role"""
    profile = get_object_or_404(Profile.objects.select_related('user'), pk=pk)

    if request.method == 'GET':
        return Response(ProfileSerializer(profile).data)

    if profile.pk == request.user.pk and 'role' in request.data and request.data['role'] != profile.role:
        return Response({'error': 'Cannot change your own role'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ProfileUpdateSerializer(profile, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        logger.info(f"User {request.user.pk} updated employee {pk}: {serializer.validated_data}")
        return Response(ProfileSerializer(profile).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
