"""
Auth provider used by the POS components.

Views and services receive an ``AuthProvider`` instead of calling Django's
auth machinery directly, so tests can hand in a double.
"""
from abc import ABC, abstractmethod
import logging

from django.contrib.auth import authenticate
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .exceptions import AuthExpired

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    @abstractmethod
    def sign_in(self, identifier, credential):
        """Return the user for valid credentials, otherwise None."""

    @abstractmethod
    def get_current_user(self, request):
        """Return the signed-in user for the request, or None."""

    @abstractmethod
    def sign_out(self, refresh_token):
        """Invalidate the session identified by the refresh token."""


class DjangoAuthProvider(AuthProvider):
    def sign_in(self, identifier, credential):
        user = authenticate(username=identifier, password=credential)
        if user is None:
            logger.info("Failed sign-in for %s", identifier)
            return None
        if not user.is_active:
            logger.info("Sign-in refused for inactive account %s", identifier)
            return None
        return user

    def get_current_user(self, request):
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated or not user.is_active:
            return None
        return user

    def sign_out(self, refresh_token):
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as exc:
            raise AuthExpired() from exc

    def issue_tokens(self, user):
        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role
        refresh['staff_code'] = user.staff_code
        return {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
        }


default_auth_provider = DjangoAuthProvider()
