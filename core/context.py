"""
Explicit authentication context passed into every domain operation.

Views build one AuthContext per request from the authenticated user and hand it
to services, so business rules never reach for framework session state.
"""
from dataclasses import dataclass, replace
from typing import Optional

from core.constants import UserRole
from core.exceptions import AuthenticationRequiredError, PermissionDeniedError


def client_ip(request):
    """Client address of a request, honouring X-Forwarded-For"""
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


@dataclass(frozen=True)
class AuthContext:
    """Who is acting: user id, role and the residence they act in"""
    user_id: int
    role: str
    residence_id: Optional[int] = None
    ip_address: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> 'AuthContext':
        """Build a context from a Django user, or raise if nobody is signed in"""
        if user is None or not getattr(user, 'is_authenticated', False):
            raise AuthenticationRequiredError()
        return cls(user_id=user.id, role=user.role, residence_id=user.residence_id)

    @classmethod
    def from_request(cls, request) -> 'AuthContext':
        """Context of a request, carrying the client address for the audit trail"""
        ctx = cls.from_user(getattr(request, 'user', None))
        return replace(ctx, ip_address=client_ip(request))

    @property
    def is_syndic(self) -> bool:
        return self.role == UserRole.SYNDIC

    @property
    def is_resident(self) -> bool:
        return self.role == UserRole.RESIDENT

    @property
    def is_guard(self) -> bool:
        return self.role == UserRole.GUARD

    def require_residence(self) -> int:
        """Return the residence id or raise when the user has none assigned"""
        if not self.residence_id:
            raise PermissionDeniedError(
                "You must have a residence assigned to perform this action",
                code="NO_RESIDENCE",
            )
        return self.residence_id
