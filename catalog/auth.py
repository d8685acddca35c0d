"""Shared-secret admin gate for the catalog's write endpoints."""
from dataclasses import dataclass

from decouple import config
from django.conf import settings
from django.utils.crypto import constant_time_compare
from rest_framework.authentication import BaseAuthentication
from rest_framework.permissions import BasePermission

from .errors import ConfigurationError, Unauthorized

ADMIN_COOKIE = "admin"
ADMIN_COOKIE_VALUE = "1"


@dataclass(frozen=True)
class AdminSession:
    """Capability flag resolved from the admin cookie once per request."""
    is_admin: bool = False

    @property
    def is_authenticated(self):
        return self.is_admin


def _cookie_salt():
    return getattr(settings, "ADMIN_COOKIE_SALT", "catalog.admin")


def check_password(password: str) -> bool:
    expected = config("ADMIN_PASSWORD", default="")
    if not expected:
        raise ConfigurationError("ADMIN_PASSWORD")
    return constant_time_compare(str(password), expected)


def set_admin_cookie(response):
    response.set_signed_cookie(
        key=ADMIN_COOKIE,
        value=ADMIN_COOKIE_VALUE,
        salt=_cookie_salt(),
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
    )
    return response


def clear_admin_cookie(response):
    response.delete_cookie(ADMIN_COOKIE, samesite="Lax")
    return response


class AdminCookieAuthentication(BaseAuthentication):
    """Resolve the signed ``admin`` cookie into an AdminSession.

    Always succeeds: requests without a valid cookie get a session with
    ``is_admin=False``, and it is up to IsStudioAdmin to reject them.
    A tampered or unsigned cookie counts as absent.
    """

    def authenticate(self, request):
        value = request.get_signed_cookie(ADMIN_COOKIE, default=None, salt=_cookie_salt())
        return AdminSession(is_admin=value == ADMIN_COOKIE_VALUE), None


class IsStudioAdmin(BasePermission):

    def has_permission(self, request, view):
        session = getattr(request, "user", None)
        if not getattr(session, "is_admin", False):
            raise Unauthorized()
        return True
