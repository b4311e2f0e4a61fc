"""
Bearer token authentication.

Access tokens are issued by ``issue_tokens`` and carry the user's
``username`` and ``role`` next to simplejwt's ``user_id``.  The
authentication class re-checks the role claim against the database so a
token minted before a role change stops working immediately.
"""
from __future__ import annotations

from rest_framework_simplejwt import authentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken


def issue_tokens(user) -> RefreshToken:
    """Return a refresh token whose access token carries username and role."""
    refresh = RefreshToken.for_user(user)
    refresh['username'] = user.username
    refresh['role'] = user.role
    return refresh


class JWTAuthentication(authentication.JWTAuthentication):
    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if validated_token.get('role') != user.role:
            raise AuthenticationFailed('Token role no longer matches the account', code='role_changed')
        return user
