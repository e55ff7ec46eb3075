"""Identity resolution.

Sign-in and token issuance belong to the external identity provider. The
gateway in front of this service forwards the resolved numeric user id in
a header, and that id is the only identity the handlers trust.
"""

from dataclasses import dataclass

from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

USER_ID_HEADER = "HTTP_X_USER_ID"


@dataclass(frozen=True)
class ResolvedIdentity:
    id: int

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False


class HeaderIdentityAuthentication(BaseAuthentication):
    """Authenticate from the ``X-User-Id`` header set by the identity provider."""

    def authenticate(self, request):
        raw = request.META.get(USER_ID_HEADER)
        if raw is None:
            return None
        try:
            user_id = int(raw)
        except ValueError:
            raise exceptions.AuthenticationFailed("Invalid user identity") from None
        if user_id <= 0:
            raise exceptions.AuthenticationFailed("Invalid user identity")
        return ResolvedIdentity(user_id), None

    def authenticate_header(self, request):
        return "X-User-Id"
