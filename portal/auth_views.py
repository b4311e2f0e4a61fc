"""
Authentication views.

Login issues a JWT pair, refresh exchanges a refresh token for a new
access token and logout blacklists a refresh token.  Kept apart from
``portal.authentication`` so DRF can import the authentication class
without pulling in the views.
"""
from __future__ import annotations

from django.conf import settings
from django.contrib.auth import authenticate
from rest_framework import exceptions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from .authentication import issue_tokens
from .exceptions import ValidationError
from .models import User
from .permissions import IsAdminRole
from .serializers.auth import LoginSerializer, LogoutSerializer, RegisterSerializer
from .services.audit import log_action


def format_user(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': user.name or user.username,
        'role': user.role,
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']

    user = authenticate(request, username=username, password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='LOGIN_FAILED', description=f'Failed login attempt for {username}',
                   object_type='user', detail={'username': username, 'ip': request.META.get('REMOTE_ADDR')})
        raise exceptions.AuthenticationFailed('Invalid credentials')

    log_action(user=user, action='LOGIN', description=f'{user.name or user.username} logged in',
               object_type='user', object_id=user.id, detail={'ip': request.META.get('REMOTE_ADDR')})
    refresh = issue_tokens(user)
    return Response({
        'token': str(refresh.access_token),
        'refresh': str(refresh),
        'expiresIn': int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        'user': format_user(user),
    })

# DRF ScopedRateThrottle uses throttle_scope on the view function
login_view.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = User.objects.create_user(username=vd['username'], password=vd['password'], name=vd['name'], role=vd['role'])
    log_action(user=request.user, action='REGISTER_USER', description=f'Registered {user.role} account {user.username}',
               object_type='user', object_id=user.id)
    return Response(format_user(user), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response) and resp.status_code == 200:
        data = dict(resp.data)
        data['token'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the caller's refresh token."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        token = RefreshToken(s.validated_data['refresh'])
    except TokenError:
        raise ValidationError('Invalid or expired refresh token')
    if str(token.get('user_id')) != str(request.user.id):
        raise ValidationError('Refresh token does not belong to this account')
    token.blacklist()
    log_action(user=request.user, action='LOGOUT', description=f'{request.user.name or request.user.username} logged out',
               object_type='user', object_id=request.user.id)
    return Response({'ok': True, 'message': 'Logged out'})
