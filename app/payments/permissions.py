"""
Authentication and permission classes for the sweeper endpoints.

The sweeper endpoints are called by a scheduler, not a user. When
PAYMENT_SWEEPER_TOKEN is set, callers must send
"Authorization: Bearer <token>"; when it is empty the endpoints are open
(local development).
"""

import hmac

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission

SWEEPER_AUTH = "sweeper-token"


class SweeperTokenAuthentication(BaseAuthentication):
    """Accept the configured sweeper bearer token."""

    keyword = "Bearer"

    def authenticate(self, request):
        token = settings.PAYMENT_SWEEPER_TOKEN
        header = get_authorization_header(request).decode("latin-1")
        if not token or not header:
            return None

        expected = f"{self.keyword} {token}"
        if not hmac.compare_digest(header.encode(), expected.encode()):
            raise AuthenticationFailed("Invalid sweeper token")
        return (AnonymousUser(), SWEEPER_AUTH)

    def authenticate_header(self, request):
        return self.keyword


class IsSweeperCaller(BasePermission):
    """Allow the sweeper token holder, or anyone when no token is configured."""

    def has_permission(self, request, view):
        if not settings.PAYMENT_SWEEPER_TOKEN:
            return True
        return request.auth == SWEEPER_AUTH
