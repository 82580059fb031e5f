"""Authorization gate consumed by request handlers."""

from typing import Iterable, Optional

from .authorizer import WildcardAuthorizer
from .exceptions import PermissionDenied
from .store import Principal


class AuthorizationGate:
    """Boolean checks and 403-style denials on top of the authorizer."""

    def __init__(self, authorizer: WildcardAuthorizer):
        self.authorizer = authorizer

    def can(self, principal: Optional[Principal], permission: str, guard: Optional[str] = None) -> bool:
        return self.authorizer.can(principal, permission, guard)

    def can_any(self, principal: Optional[Principal], permissions: Iterable[str], guard: Optional[str] = None) -> bool:
        return self.authorizer.can_any(principal, permissions, guard)

    def can_all(self, principal: Optional[Principal], permissions: Iterable[str], guard: Optional[str] = None) -> bool:
        return self.authorizer.can_all(principal, permissions, guard)

    def authorize_or_403(self, principal: Optional[Principal], permission: str, guard: Optional[str] = None) -> None:
        """Raise PermissionDenied (code PERMISSION_DENIED) unless allowed."""
        guard = guard or self.authorizer.default_guard
        if not self.authorizer.can(principal, permission, guard):
            raise PermissionDenied(permission, guard)
